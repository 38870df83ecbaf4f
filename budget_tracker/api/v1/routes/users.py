# budget_tracker/api/v1/routes/users.py
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi_users import BaseUserManager, exceptions
from sqlalchemy.ext.asyncio import AsyncSession

from budget_tracker.core.auth import get_user_manager, User, UserRead, UserUpdate
from budget_tracker.core.database import get_async_session
from budget_tracker.crud.user import identity_taken
from budget_tracker.schemas.user import PasswordChange, ProfileUpdate
from budget_tracker.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["User Management"])

# 1) GET /users/me
@router.get("/me", response_model=UserRead)
async def read_own_profile(
    user: User = Depends(get_current_user),
):
    """Get current user's profile"""
    return user

# 2) PATCH /users/me
@router.patch("/me", response_model=UserRead)
async def update_own_profile(
    profile_in: ProfileUpdate,
    user: User = Depends(get_current_user),
    user_manager: BaseUserManager[User, uuid.UUID] = Depends(get_user_manager),
    db: AsyncSession = Depends(get_async_session),
):
    """Update the current user's username and/or email"""
    update_dict = profile_in.model_dump(exclude_unset=True, exclude_none=True)
    if not update_dict:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields provided for update"
        )

    if await identity_taken(user, db, email=update_dict.get("email"), username=update_dict.get("username")):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    try:
        return await user_manager.update(UserUpdate(**update_dict), user, safe=True)
    except exceptions.UserAlreadyExists:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

# 3) PUT /users/me/password
@router.put("/me/password")
async def change_own_password(
    body: PasswordChange,
    user: User = Depends(get_current_user),
    user_manager: BaseUserManager[User, uuid.UUID] = Depends(get_user_manager),
):
    """Change the password after checking the current one"""
    verified, _ = user_manager.password_helper.verify_and_update(body.current_password, user.hashed_password)
    if not verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is incorrect")

    try:
        await user_manager.update(UserUpdate(password=body.new_password), user, safe=True)
    except exceptions.InvalidPasswordException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.reason)

    logger.info(f"Password changed for user {user.email}")
    return {"detail": "Password has been updated successfully"}
