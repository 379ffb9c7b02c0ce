from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from daybook.core.database import get_db
from daybook.models.user import User
from daybook.services import user_service

async def get_current_user(
    x_telegram_id: int = Header(..., alias="X-Telegram-Id"),
    x_telegram_username: Optional[str] = Header(None, alias="X-Telegram-Username"),
    x_telegram_first_name: Optional[str] = Header(None, alias="X-Telegram-First-Name"),
    x_telegram_last_name: Optional[str] = Header(None, alias="X-Telegram-Last-Name"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Identity is supplied by the messaging gateway in front of this service.
    Users (and their default settings) are created on first contact.
    """
    if x_telegram_id <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Telegram ID")

    return await user_service.get_or_create_user(
        db,
        tgid=x_telegram_id,
        username=x_telegram_username,
        first_name=x_telegram_first_name,
        last_name=x_telegram_last_name,
    )
