"""
Database utilities for connection management and error handling
"""
import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Define a type variable for the return type of the decorated function
T = TypeVar('T')


def is_connection_error(exc: BaseException) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def _find_session(args: tuple, kwargs: dict) -> Optional[AsyncSession]:
    for value in list(args) + list(kwargs.values()):
        if isinstance(value, AsyncSession):
            return value
    return None


def with_db_retry(
    max_retries: int = 3,
    retry_delay: float = 0.5
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator that retries read queries on connection errors.

    The session passed to the wrapped function (if any) is rolled back
    before each retry so it can be reused.

    Args:
        max_retries: Maximum number of retries before giving up
        retry_delay: Base delay between retries in seconds, doubled on each attempt

    Returns:
        Decorated function with retry logic
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0

            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_connection_error(e):
                        raise

                    retries += 1
                    if retries > max_retries:
                        logger.error(f"Database operation {func.__name__} failed after {max_retries} retries: {e}")
                        raise

                    session = _find_session(args, kwargs)
                    if session is not None:
                        await session.rollback()

                    delay = retry_delay * (2 ** (retries - 1))  # Exponential backoff
                    logger.warning(
                        f"Database connection error: {str(e)}. "
                        f"Retrying in {delay:.2f}s... (Attempt {retries}/{max_retries})"
                    )
                    await asyncio.sleep(delay)

        return cast(Callable[..., Awaitable[T]], wrapper)

    return decorator
