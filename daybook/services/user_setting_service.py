import logging
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from sqlalchemy import select, update
from daybook.models.user_setting import UserSetting
from daybook.schemas.user_setting import UserSettingUpdate
from daybook.services.user_service import ensure_settings
from daybook.utils.parsing import is_valid_reminder_time
from daybook.utils.timezone import DEFAULT_TIMEZONE, is_valid_timezone

logger = logging.getLogger(__name__)

async def get_user_settings(db: AsyncSession, user_id: int) -> UserSetting:
    query = select(UserSetting).filter(UserSetting.user_id == user_id)
    result = await db.execute(query)
    settings = result.scalars().first()

    if not settings:
        # Create default if not exists
        await ensure_settings(db, user_id)
        await db.commit()
        result = await db.execute(query)
        settings = result.scalars().one()

    return settings

async def get_user_timezone(db: AsyncSession, user_id: int) -> str:
    result = await db.execute(select(UserSetting.timezone).filter(UserSetting.user_id == user_id))
    return result.scalar_one_or_none() or DEFAULT_TIMEZONE

async def update_user_settings(db: AsyncSession, settings_update: UserSettingUpdate, user_id: int) -> UserSetting:
    update_data = settings_update.changes()

    if "timezone" in update_data and not is_valid_timezone(update_data["timezone"]):
        raise ValueError(f"Unknown timezone: {update_data['timezone']}")
    hour = update_data.get("reminder_hour", 0)
    minute = update_data.get("reminder_minute", 0)
    if not is_valid_reminder_time(hour, minute):
        raise ValueError(f"Invalid reminder time {hour}:{minute}")

    settings = await get_user_settings(db, user_id)
    for key, value in update_data.items():
        if hasattr(settings, key):
            setattr(settings, key, value)

    db.add(settings)
    await db.commit()
    await db.refresh(settings)

    if update_data:
        logger.info(f"⚙️ Updated settings for user {user_id}: {', '.join(sorted(update_data))}")
    return settings

async def mark_reminder_sent(db: AsyncSession, user_id: int, date_key: date):
    """Remember the local day the user was last reminded for."""
    stmt = update(UserSetting).where(UserSetting.user_id == user_id).values(last_reminder_date=date_key)
    try:
        await db.execute(stmt)
        await db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to record reminder for user {user_id} on {date_key}: {e}")
        await db.rollback()
        raise
