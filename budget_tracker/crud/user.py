# budget_tracker/crud/user.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from budget_tracker.core.auth import User, get_user_by_username
from typing import Optional

async def get_user_by_email(email: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()

async def identity_taken(
    user: User,
    db: AsyncSession,
    email: Optional[str] = None,
    username: Optional[str] = None,
) -> bool:
    """True if another user already has this email or username."""
    if email is not None:
        other = await get_user_by_email(email, db)
        if other is not None and other.id != user.id:
            return True
    if username is not None:
        other = await get_user_by_username(username, db)
        if other is not None and other.id != user.id:
            return True
    return False
