# budget_tracker/api/deps.py
from typing import Any, Optional, TypeVar
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import jwt
import uuid

from budget_tracker.core.auth import JWT_AUDIENCE, User
from budget_tracker.core.config import Settings, get_app_settings
from budget_tracker.core.database import get_async_session

# Security schemes
optional_security = HTTPBearer(auto_error=False)

R = TypeVar("R")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> User:
    """
    Resolve the current user from a bearer token found in:
    - the Authorization header
    - the access_token cookie
    """
    token = credentials.credentials if credentials and credentials.credentials else None

    # From cookie
    if not token:
        token = request.cookies.get("access_token")
        # Remove "Bearer " prefix if present in cookie
        if token and token.startswith("Bearer "):
            token = token[7:]

    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise _unauthorized("Invalid user ID format in token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()

    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Inactive user")

    return user

# Optional version of get_current_user that doesn't raise exceptions
async def get_optional_current_user(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Optional[User]:
    try:
        return await get_current_user(request, db, settings, credentials)
    except HTTPException:
        return None


def authorize_access(resource: Optional[R], user: User, name: str, allow_default: bool = False) -> R:
    """
    Ownership check shared by every user-owned resource.

    Raises 404 when the resource does not exist and 403 when it belongs to
    someone else. Default (shared) categories pass when ``allow_default`` is set.
    """
    if resource is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"{name} not found")
    if allow_default and getattr(resource, "is_default", False):
        return resource
    owner_id: Any = getattr(resource, "user_id", None)
    if owner_id is None or owner_id != user.id:
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to access this {name.lower()}",
        )
    return resource
