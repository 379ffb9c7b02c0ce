import logging
import math
import pytz
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from daybook.core.config import settings
from daybook.core.database import upsert_insert
from daybook.models.entry import Entry
from daybook.models.user import User
from daybook.models.user_setting import UserSetting
from daybook.schemas.entry import EntryCreate, EntryResponse, PaginatedEntries, DiaryStats
from daybook.services import stats_service, export_service
from daybook.services.export_service import ExportFile
from daybook.services.user_setting_service import get_user_timezone
from daybook.utils.timezone import (
    DateRange,
    get_current_date,
    get_month_range,
    get_utc_window,
    get_year_range,
    logical_date_key,
    utc_now,
)

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ReminderCandidate:
    user_id: int
    tgid: int
    timezone: str
    reminder_hour: int
    reminder_minute: int
    date_key: date

# --- Entry store ---------------------------------------------------------

async def upsert_entry(
    db: AsyncSession,
    user_id: int,
    date_key: date,
    text: str,
    rating: Optional[int] = None,
) -> Tuple[Entry, bool]:
    """
    Create or update the entry for (user_id, date_key) in one statement.

    Concurrent writes for the same key are serialized by the unique constraint;
    the last one wins and no duplicate row is created. Returns the stored entry
    and whether a row already existed for that key.
    """
    now = utc_now()
    stmt = upsert_insert(db, Entry).values(
        user_id=user_id,
        entry_date=date_key,
        text=text,
        rating=rating,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Entry.user_id, Entry.entry_date],
        set_={
            "text": stmt.excluded.text,
            "rating": stmt.excluded.rating,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(Entry)
    orm_stmt = select(Entry).from_statement(stmt).execution_options(populate_existing=True)

    try:
        result = await db.execute(orm_stmt)
        entry = result.scalars().one()
        await db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to upsert entry for user {user_id} on {date_key}: {e}")
        await db.rollback()
        raise

    # Both timestamps come from the same value on insert and go through the same
    # column type, so they only differ once an update has moved updated_at
    was_update = entry.created_at != entry.updated_at
    return entry, was_update

async def get_entry_by_date(db: AsyncSession, user_id: int, date_key: date) -> Optional[Entry]:
    query = select(Entry).filter(Entry.user_id == user_id, Entry.entry_date == date_key)
    result = await db.execute(query)
    return result.scalars().first()

async def has_entry_for_date(db: AsyncSession, user_id: int, date_key: date) -> bool:
    query = select(func.count(Entry.id)).filter(Entry.user_id == user_id, Entry.entry_date == date_key)
    result = await db.execute(query)
    return result.scalar_one() > 0

def _range_filter(user_id: int, date_range: DateRange):
    return (
        Entry.user_id == user_id,
        Entry.entry_date >= date_range.start,
        Entry.entry_date <= date_range.end,
    )

async def get_entries_by_range(
    db: AsyncSession,
    user_id: int,
    date_range: DateRange,
    page: int = 1,
    page_size: int = 10,
) -> PaginatedEntries:
    """One page of entries in the range, newest first. Pages outside 1..total_pages are empty."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")

    count_query = select(func.count(Entry.id)).filter(*_range_filter(user_id, date_range))
    total_count = (await db.execute(count_query)).scalar_one()
    total_pages = math.ceil(total_count / page_size)

    entries: List[Entry] = []
    if 1 <= page <= total_pages:
        query = (
            select(Entry)
            .filter(*_range_filter(user_id, date_range))
            .order_by(desc(Entry.entry_date))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        entries = list((await db.execute(query)).scalars().all())

    return PaginatedEntries(
        entries=[EntryResponse.model_validate(e) for e in entries],
        total_count=total_count,
        current_page=page,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
    )

async def get_all_entries_in_range(db: AsyncSession, user_id: int, date_range: DateRange) -> List[Entry]:
    query = select(Entry).filter(*_range_filter(user_id, date_range)).order_by(desc(Entry.entry_date))
    result = await db.execute(query)
    return list(result.scalars().all())

async def get_users_due_for_reminder(db: AsyncSession, now: Optional[datetime] = None) -> List[ReminderCandidate]:
    """
    Users with reminders on, no entry for their own local today and no
    reminder already sent for it.

    "Today" differs per timezone, so entries are pre-filtered to the UTC
    date +/- one day in SQL and each user's local date key is checked here.
    """
    now = now or utc_now()
    window = get_utc_window(now)

    users_query = (
        select(
            User.id,
            User.tgid,
            UserSetting.timezone,
            UserSetting.reminder_hour,
            UserSetting.reminder_minute,
            UserSetting.last_reminder_date,
        )
        .join(UserSetting, User.id == UserSetting.user_id)
        .filter(UserSetting.reminders_enabled == True)
    )
    rows = (await db.execute(users_query)).all()
    if not rows:
        return []

    recorded_query = (
        select(Entry.user_id, Entry.entry_date)
        .join(UserSetting, Entry.user_id == UserSetting.user_id)
        .filter(
            UserSetting.reminders_enabled == True,
            Entry.entry_date >= window.start,
            Entry.entry_date <= window.end,
        )
    )
    recorded = {(user_id, entry_date) for user_id, entry_date in (await db.execute(recorded_query)).all()}

    candidates = []
    for user_id, tgid, tz_name, hour, minute, last_reminder_date in rows:
        try:
            local_today = logical_date_key(now, tz_name)
        except pytz.UnknownTimeZoneError as e:
            logger.warning(f"⚠️ Skipping user {tgid} with unusable timezone '{tz_name}': {e}")
            continue
        if (user_id, local_today) in recorded or last_reminder_date == local_today:
            continue
        candidates.append(ReminderCandidate(user_id, tgid, tz_name, hour, minute, local_today))

    return candidates

# --- Diary operations in the user's timezone -----------------------------

async def add_entry(
    db: AsyncSession,
    user_id: int,
    entry_in: EntryCreate,
    now: Optional[datetime] = None,
) -> Tuple[Entry, bool]:
    timezone = await get_user_timezone(db, user_id)
    date_key = logical_date_key(now or utc_now(), timezone)

    entry, was_update = await upsert_entry(db, user_id, date_key, entry_in.text, entry_in.rating)
    logger.info(f"📝 {'Updated' if was_update else 'Created'} entry for user {user_id} on {date_key} ({timezone})")
    return entry, was_update

async def get_today_entry(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> Optional[Entry]:
    timezone = await get_user_timezone(db, user_id)
    return await get_entry_by_date(db, user_id, get_current_date(timezone, now))

async def get_entries_for_month(
    db: AsyncSession,
    user_id: int,
    year: Optional[int] = None,
    month: Optional[int] = None,
    page: int = 1,
    now: Optional[datetime] = None,
) -> PaginatedEntries:
    """Defaults to the current month in the user's timezone."""
    if year is None or month is None:
        today = get_current_date(await get_user_timezone(db, user_id), now)
        year, month = today.year, today.month

    return await get_entries_by_range(
        db, user_id, get_month_range(year, month), page=page, page_size=settings.ENTRIES_PAGE_SIZE
    )

async def _resolve_year(db: AsyncSession, user_id: int, year: Optional[int], now: Optional[datetime]) -> Tuple[str, int]:
    timezone = await get_user_timezone(db, user_id)
    if year is None:
        year = get_current_date(timezone, now).year
    return timezone, year

async def get_stats_for_year(
    db: AsyncSession,
    user_id: int,
    year: Optional[int] = None,
    now: Optional[datetime] = None,
) -> DiaryStats:
    _, year = await _resolve_year(db, user_id, year, now)
    entries = await get_all_entries_in_range(db, user_id, get_year_range(year))
    return stats_service.compute_stats(entries, year)

async def export_entries(
    db: AsyncSession,
    user_id: int,
    fmt: str,
    year: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Optional[ExportFile]:
    """Render a year of entries. Returns None when the year has no entries."""
    timezone, year = await _resolve_year(db, user_id, year, now)
    entries = await get_all_entries_in_range(db, user_id, get_year_range(year))
    if not entries:
        return None

    export = export_service.render_export(entries, fmt, timezone, year=year, now=now)
    logger.info(f"📤 Exported {len(entries)} entries for user {user_id} as {fmt}")
    return export
