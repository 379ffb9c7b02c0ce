from fastapi import APIRouter, Depends
from daybook.schemas.user import UserResponse
from daybook.api.deps import get_current_user
from daybook.models.user import User

router = APIRouter()

@router.get("/me", response_model=UserResponse)
async def get_user_profile(current_user: User = Depends(get_current_user)):
    """Get current user details with their settings"""
    return current_user
