from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from daybook.core.database import get_db
from daybook.schemas.user_setting import UserSettingResponse, UserSettingUpdate
from daybook.services import user_setting_service

from daybook.api.deps import get_current_user
from daybook.models.user import User

router = APIRouter()

@router.get("/", response_model=UserSettingResponse)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await user_setting_service.get_user_settings(db, current_user.id)

@router.put("/", response_model=UserSettingResponse)
async def update_settings(
    settings: UserSettingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Partial update. Changing the timezone only affects entries written from
    now on; existing entries keep the date they were recorded under.
    """
    try:
        return await user_setting_service.update_user_settings(db, settings, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
