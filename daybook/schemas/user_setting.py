from pydantic import BaseModel, computed_field, field_validator, model_validator
from typing import Optional
from daybook.utils.parsing import parse_reminder_time, format_reminder_time
from daybook.utils.timezone import is_valid_timezone

class UserSettingBase(BaseModel):
    timezone: str = "UTC"
    reminders_enabled: bool = True
    reminder_hour: int = 21
    reminder_minute: int = 0

class UserSettingUpdate(BaseModel):
    timezone: Optional[str] = None
    reminders_enabled: Optional[bool] = None
    reminder_time: Optional[str] = None # "HH:MM"
    reminder_hour: Optional[int] = None
    reminder_minute: Optional[int] = None

    @field_validator('timezone')
    def timezone_must_be_known(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not is_valid_timezone(v):
            raise ValueError('Unknown timezone. Use an IANA name such as Europe/Warsaw')
        return v

    @field_validator('reminder_hour')
    def hour_in_range(cls, v):
        if v is not None and not 0 <= v <= 23:
            raise ValueError('Hour must be between 0 and 23')
        return v

    @field_validator('reminder_minute')
    def minute_in_range(cls, v):
        if v is not None and not 0 <= v <= 59:
            raise ValueError('Minute must be between 0 and 59')
        return v

    @model_validator(mode='after')
    def expand_reminder_time(self):
        if self.reminder_time is not None:
            parsed = parse_reminder_time(self.reminder_time)
            if not parsed:
                raise ValueError('Invalid time format. Use HH:MM, e.g. 21:00')
            self.reminder_hour, self.reminder_minute = parsed
            self.reminder_time = None
        return self

    def changes(self) -> dict:
        """Fields the client actually sent, in column names."""
        data = self.model_dump(exclude_unset=True, exclude={'reminder_time'})
        if 'reminder_time' in self.model_fields_set:
            data['reminder_hour'] = self.reminder_hour
            data['reminder_minute'] = self.reminder_minute
        return {key: value for key, value in data.items() if value is not None}

class UserSettingResponse(UserSettingBase):
    id: int
    user_id: int

    @computed_field
    @property
    def reminder_time(self) -> str:
        return format_reminder_time(self.reminder_hour, self.reminder_minute)

    class Config:
        from_attributes = True
