import re
from typing import Optional, Tuple

MIN_YEAR = 1970
MAX_YEAR = 2100
MIN_RATING = 1
MAX_RATING = 10

_CONTROL_CHARS = re.compile(r"[\u0000-\u001f\u007f-\u009f]")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_YEAR_RE = re.compile(r"^(\d{4})$")


def sanitize_text(text: str, max_length: int = 4000) -> str:
    """Trim, drop control characters and cap the length of entry text."""
    return _CONTROL_CHARS.sub("", text.strip())[:max_length]


def is_valid_rating(rating: Optional[int]) -> bool:
    return isinstance(rating, int) and not isinstance(rating, bool) and MIN_RATING <= rating <= MAX_RATING


def is_valid_reminder_time(hour: int, minute: int) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59


def is_valid_year(year: int) -> bool:
    return MIN_YEAR <= year <= MAX_YEAR


def parse_add_command(raw: str) -> Optional[Tuple[Optional[int], str]]:
    """
    Split "/add" arguments into (rating, text).

    A leading integer 1-10 is the rating and the words after it become the
    text, joined by single spaces. A rating with no text after it is rejected.
    The rating must be a whole token, so "3pm meeting" stays plain text.
    """
    if not raw or not raw.strip():
        return None

    parts = raw.split()
    first = parts[0]
    if first.isascii() and first.isdigit() and is_valid_rating(int(first)):
        text = " ".join(parts[1:])
        if not text:
            return None
        return int(first), text

    return None, raw.strip()


def parse_reminder_time(raw: str) -> Optional[Tuple[int, int]]:
    match = _TIME_RE.match(raw.strip()) if raw else None
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    if not is_valid_reminder_time(hour, minute):
        return None
    return hour, minute


def parse_month_input(raw: str) -> Optional[Tuple[int, int]]:
    match = _MONTH_RE.match(raw.strip()) if raw else None
    if not match:
        return None

    year, month = int(match.group(1)), int(match.group(2))
    if not is_valid_year(year) or not 1 <= month <= 12:
        return None
    return year, month


def parse_year_input(raw: str) -> Optional[int]:
    match = _YEAR_RE.match(raw.strip()) if raw else None
    if not match:
        return None

    year = int(match.group(1))
    return year if is_valid_year(year) else None


def format_reminder_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"
