from sqlalchemy import Column, Integer, Boolean, String, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from daybook.core.database import Base
from daybook.utils.timezone import DEFAULT_TIMEZONE, utc_now

DEFAULT_REMINDER_HOUR = 21
DEFAULT_REMINDER_MINUTE = 0

class UserSetting(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    timezone = Column(String, default=DEFAULT_TIMEZONE, nullable=False) # IANA name
    reminders_enabled = Column(Boolean, default=True, nullable=False)
    reminder_hour = Column(Integer, default=DEFAULT_REMINDER_HOUR, nullable=False) # 0-23, local time
    reminder_minute = Column(Integer, default=DEFAULT_REMINDER_MINUTE, nullable=False) # 0-59
    last_reminder_date = Column(Date, nullable=True) # Local date key of the last reminder sent
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="settings")
