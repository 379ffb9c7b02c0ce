"""
Clock and timezone helpers.

Every "what day is it for this user" question goes through here. Date keys are
the user's local calendar day (a ``date``), derived once at write time with the
user's current timezone and stored verbatim. Changing a user's timezone later
does not re-key entries that already exist.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple
import calendar

import pytz

DEFAULT_TIMEZONE = "UTC"

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of date keys covering a local month or year."""
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


def utc_now() -> datetime:
    """Returns the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_valid_timezone(name: Optional[str]) -> bool:
    if not name:
        return False
    try:
        pytz.timezone(name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def get_tz(name: Optional[str]):
    """Resolve an IANA name, falling back to UTC for an empty value."""
    return pytz.timezone(name or DEFAULT_TIMEZONE)


def to_local(instant: datetime, tz_name: Optional[str]) -> datetime:
    return ensure_utc(instant).astimezone(get_tz(tz_name))


def logical_date_key(instant: datetime, tz_name: Optional[str] = DEFAULT_TIMEZONE) -> date:
    """
    Map an instant to the calendar day that contains it in ``tz_name``.

    Two instants on the same local day give the same key, including on DST
    transition days (23 or 25 hour days).
    """
    return to_local(instant, tz_name).date()


def get_current_date(tz_name: Optional[str] = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> date:
    return logical_date_key(now or utc_now(), tz_name)


def get_user_time(tz_name: Optional[str] = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> Tuple[int, int]:
    """Current wall-clock (hour, minute) in the given timezone."""
    local = to_local(now or utc_now(), tz_name)
    return local.hour, local.minute


def should_send_reminder(
    reminder_hour: int,
    reminder_minute: int,
    tz_name: Optional[str] = DEFAULT_TIMEZONE,
    now: Optional[datetime] = None,
) -> bool:
    hour, minute = get_user_time(tz_name, now)
    return hour == reminder_hour and minute == reminder_minute


def get_month_range(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def get_year_range(year: int) -> DateRange:
    return DateRange(start=date(year, 1, 1), end=date(year, 12, 31))


def get_utc_window(now: Optional[datetime] = None) -> DateRange:
    """
    Every timezone's local "today" falls within one day of the UTC date, so
    this range covers all users' current date keys at once.
    """
    today_utc = ensure_utc(now or utc_now()).date()
    return DateRange(start=today_utc - timedelta(days=1), end=today_utc + timedelta(days=1))


def format_date(day: date, pattern: str = DATE_FORMAT) -> str:
    return day.strftime(pattern)


def format_datetime(instant: datetime, tz_name: Optional[str] = DEFAULT_TIMEZONE) -> str:
    return to_local(instant, tz_name).strftime(DATETIME_FORMAT)
