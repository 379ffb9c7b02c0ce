from fastapi import APIRouter
from daybook.api.v1.endpoints import entries, user_settings, users

api_router = APIRouter()
api_router.include_router(entries.router, prefix="/entries", tags=["entries"])
api_router.include_router(user_settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
