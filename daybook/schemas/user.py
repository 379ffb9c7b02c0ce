from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from daybook.schemas.user_setting import UserSettingResponse

class UserBase(BaseModel):
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserResponse(UserBase):
    id: int
    tgid: int
    created_at: datetime
    settings: Optional[UserSettingResponse] = None

    class Config:
        from_attributes = True
