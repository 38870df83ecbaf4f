# budget_tracker/core/database.py
import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .config import Settings

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    engine_kwargs = {
        "echo": settings.DEBUG,
        "future": True,
    }

    if settings.is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if settings.is_memory_sqlite:
            # Every session must see the same in-memory database
            engine_kwargs["poolclass"] = StaticPool
        logger.info("🔧 Configured engine for SQLite")
    else:
        engine_kwargs.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,  # Seconds to wait for a free connection
            "pool_pre_ping": True,                     # Check connection before using
            "pool_recycle": 300,                       # Recycle connections after 5 minutes
        })

    return create_async_engine(settings.DATABASE_URL, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )


async def create_db_and_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependency to get DB session with proper exception handling
async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    session = request.app.state.session_factory()
    try:
        yield session
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        await session.rollback()
        raise
    finally:
        await session.close()
        logger.debug("Database session closed")
