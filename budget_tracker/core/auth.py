# budget_tracker/core/auth.py

import re
import uuid
import logging
from datetime import datetime
from typing import Optional, Union

from fastapi import Depends, Request
from fastapi_users import FastAPIUsers, BaseUserManager, UUIDIDMixin, exceptions
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    JWTStrategy,
)
from fastapi_users.db import SQLAlchemyUserDatabase
from fastapi_users import schemas
from pydantic import Field

from sqlalchemy import Column, String, Boolean, DateTime, func, select
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_app_settings
from .database import Base, get_async_session
from budget_tracker.utils.email import password_reset_body, send_email_via_sendgrid

logger = logging.getLogger(__name__)

JWT_AUDIENCE = ["fastapi-users:auth"]

# At least one lowercase, one uppercase, one digit and one special character
PASSWORD_PATTERN = re.compile(r"^(?=.*\d)(?=.*[a-z])(?=.*[A-Z])(?=.*[!@#$%^&*])")
PASSWORD_MIN_LENGTH = 8

# 1. User DB model
class User(Base):
    __tablename__ = "users"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(length=320), unique=True, index=True, nullable=False)
    username = Column(String(length=50), unique=True, index=True, nullable=False)
    hashed_password = Column(String(length=1024), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User username={self.username} email={self.email}>"

# 2. Pydantic schemas
class UserRead(schemas.BaseUser[uuid.UUID]):
    username: str
    created_at: Optional[datetime] = None

class UserCreate(schemas.BaseUserCreate):
    username: str = Field(..., min_length=3, max_length=50)

class UserUpdate(schemas.BaseUserUpdate):
    username: Optional[str] = Field(None, min_length=3, max_length=50)


async def get_user_by_username(username: str, session: AsyncSession) -> Optional[User]:
    """Case-insensitive lookup, so "Alice" and "alice" collide."""
    result = await session.execute(
        select(User).where(func.lower(User.username) == username.strip().lower())
    )
    return result.scalar_one_or_none()

# 3. User Manager
class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):

    def __init__(self, user_db: SQLAlchemyUserDatabase, settings: Settings):
        super().__init__(user_db)
        self.settings = settings
        self.reset_password_token_secret = settings.SECRET_KEY
        self.verification_token_secret = settings.SECRET_KEY
        self.reset_password_token_lifetime_seconds = settings.RESET_PASSWORD_TOKEN_LIFETIME_SECONDS

    async def validate_password(self, password: str, user: Union[UserCreate, User]) -> None:
        if len(password) < PASSWORD_MIN_LENGTH:
            raise exceptions.InvalidPasswordException(
                reason=f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
            )
        if not PASSWORD_PATTERN.match(password):
            raise exceptions.InvalidPasswordException(
                reason="Password must contain at least one uppercase letter, one lowercase letter, "
                       "one number, and one special character"
            )
        if user.email and user.email.lower() in password.lower():
            raise exceptions.InvalidPasswordException(reason="Password should not contain the e-mail")

    async def create(self, user_create: UserCreate, safe: bool = False, request: Optional[Request] = None) -> User:
        # fastapi-users only checks the email; usernames must be unique too
        if await get_user_by_username(user_create.username, self.user_db.session) is not None:
            logger.info(f"Registration rejected, username {user_create.username} is taken")
            raise exceptions.UserAlreadyExists()
        user_create.username = user_create.username.strip()
        return await super().create(user_create, safe, request)

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info(f"User {user.email} has registered.")

    async def on_after_forgot_password(self, user: User, token: str, request: Optional[Request] = None):
        logger.info(f"Password reset requested for user {user.email}. Token: {token[:10]}...")

        reset_url = f"{self.settings.FRONTEND_URL}/reset-password?token={token}"
        subject = f"🔑 Reset your {self.settings.APP_NAME} password"
        html_body = password_reset_body(
            user_name=user.username or user.email.split('@')[0],
            reset_link=reset_url,
            app_name=self.settings.APP_NAME,
        )

        success = await send_email_via_sendgrid(self.settings, user.email, subject, html_body)
        if success:
            logger.info(f"✅ Password reset email sent successfully to {user.email}")
        else:
            logger.error(f"❌ Failed to send password reset email to {user.email}")

    async def on_after_reset_password(self, user: User, request: Optional[Request] = None):
        logger.info(f"Password reset completed for user {user.email}")

# 4. User Database
async def get_user_db(session: AsyncSession = Depends(get_async_session)):
    yield SQLAlchemyUserDatabase(session, User)

# 5. User Manager dependency
async def get_user_manager(
    user_db: SQLAlchemyUserDatabase = Depends(get_user_db),
    settings: Settings = Depends(get_app_settings),
):
    yield UserManager(user_db, settings)

# 6. Authentication
bearer_transport = BearerTransport(tokenUrl="/api/v1/auth/jwt/login")

def get_jwt_strategy(settings: Settings = Depends(get_app_settings)) -> JWTStrategy:
    return JWTStrategy(
        secret=settings.SECRET_KEY,
        lifetime_seconds=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        token_audience=JWT_AUDIENCE,
        algorithm=settings.ALGORITHM,
    )

auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

# 7. FastAPI Users instance
fastapi_users = FastAPIUsers[User, uuid.UUID](get_user_manager, [auth_backend])

# Export for other modules
__all__ = [
    "fastapi_users",
    "auth_backend",
    "get_user_db",
    "get_user_manager",
    "User",
    "UserRead",
    "UserCreate",
    "UserUpdate",
    "UserManager",
]
