import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from daybook.core.config import settings as app_settings
from daybook.core.database import upsert_insert
from daybook.models.user import User
from daybook.models.user_setting import UserSetting
from daybook.utils.timezone import utc_now

logger = logging.getLogger(__name__)

async def get_or_create_user(
    db: AsyncSession,
    tgid: int,
    username: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    """
    Upsert the user by external id and make sure their settings row exists.
    Called on every contact, so users always exist before any diary operation.
    """
    now = utc_now()
    profile = {"username": username, "first_name": first_name, "last_name": last_name}
    changed = {key: value for key, value in profile.items() if value is not None}

    try:
        stmt = upsert_insert(db, User).values(tgid=tgid, created_at=now, updated_at=now, **profile)
        if changed:
            stmt = stmt.on_conflict_do_update(index_elements=[User.tgid], set_={**changed, "updated_at": now})
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[User.tgid])
        await db.execute(stmt)

        user_id = (await db.execute(select(User.id).filter(User.tgid == tgid))).scalar_one()
        await ensure_settings(db, user_id)
        await db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to upsert user {tgid}: {e}")
        await db.rollback()
        raise

    return await get_user_by_tgid(db, tgid)

async def ensure_settings(db: AsyncSession, user_id: int):
    """Insert default settings for the user unless a row already exists."""
    stmt = upsert_insert(db, UserSetting).values(
        user_id=user_id,
        timezone=app_settings.DEFAULT_TIMEZONE,
        updated_at=utc_now(),
    ).on_conflict_do_nothing(index_elements=[UserSetting.user_id])
    await db.execute(stmt)

async def get_user_by_tgid(db: AsyncSession, tgid: int) -> Optional[User]:
    query = select(User).options(selectinload(User.settings)).filter(User.tgid == tgid).execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalars().first()
