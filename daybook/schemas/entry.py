from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from daybook.core.config import settings
from daybook.utils.parsing import sanitize_text, is_valid_rating, parse_add_command

class EntryBase(BaseModel):
    text: str
    rating: Optional[int] = None

    @field_validator('text')
    def text_must_not_be_empty(cls, v):
        cleaned = sanitize_text(v, settings.ENTRY_TEXT_MAX_LENGTH)
        if not cleaned:
            raise ValueError('Entry text cannot be empty')
        return cleaned

    @field_validator('rating')
    def rating_must_be_in_range(cls, v):
        if v is not None and not is_valid_rating(v):
            raise ValueError('Rating must be an integer from 1 to 10')
        return v

class EntryCreate(EntryBase):
    pass

class EntryCommand(BaseModel):
    """Raw "/add" arguments, e.g. "8 ok day" or "just text"."""
    args: str

    def to_entry(self) -> EntryCreate:
        parsed = parse_add_command(self.args)
        if not parsed:
            raise ValueError('Invalid format. Use: [rating 1-10] text')
        rating, text = parsed
        return EntryCreate(text=text, rating=rating)

class EntryResponse(EntryBase):
    id: int
    entry_date: date
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class EntryWriteResponse(BaseModel):
    entry: EntryResponse
    was_update: bool

class PaginatedEntries(BaseModel):
    entries: List[EntryResponse]
    total_count: int
    current_page: int
    total_pages: int
    has_next: bool
    has_previous: bool

class MonthlyStats(BaseModel):
    month: int
    year: int
    entries: int
    average_rating: Optional[float] = None

class DiaryStats(BaseModel):
    year: Optional[int] = None
    total_entries: int = 0
    average_rating: Optional[float] = None
    good_days: int = 0  # rating 7-10
    average_days: int = 0  # rating 4-6
    bad_days: int = 0  # rating 1-3
    unrated_days: int = 0
    monthly_breakdown: List[MonthlyStats] = Field(default_factory=list)
