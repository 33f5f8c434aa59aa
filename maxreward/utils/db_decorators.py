"""
Database decorators for automatic error handling and rollback.

Provides decorators to automatically handle database errors, rollbacks
and lock-conflict retries in async functions that use SQLAlchemy sessions.
"""

import asyncio
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.utils.exceptions import ConcurrencyConflictError, is_lock_conflict


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    """
    Locate the session of a decorated call.

    Looks at the 'session' keyword, the first positional argument and
    the 'session' attribute of a bound service instance.
    """
    session = kwargs.get("session")
    if session is not None:
        return session

    if args:
        first = args[0]
        if isinstance(first, AsyncSession):
            return first
        candidate = getattr(first, "session", None)
        if isinstance(candidate, AsyncSession):
            return candidate

    return None


async def _safe_rollback(session: AsyncSession, func_name: str, error: Exception) -> None:
    """Roll back, logging (not raising) a failed rollback."""
    try:
        await session.rollback()
        logger.info(
            f"Rollback performed in {func_name} due to error: {type(error).__name__}"
        )
    except Exception as rollback_error:
        logger.opt(exception=rollback_error).error(
            "Failed to rollback in {}: {}", func_name, rollback_error
        )


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that automatically rolls back the session on any exception.

    Usage:
        @with_rollback_on_error
        async def my_function(session: AsyncSession, ...):
            # Your database operations
            pass

    Args:
        func: Async function to wrap. The session is taken from the
              'session' keyword, the first positional argument or the
              'session' attribute of a service instance.

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session argument found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            await _safe_rollback(session, func.__name__, e)
            raise

    return wrapper


def with_auto_commit(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that commits the session on success and rolls back on error.

    Usage:
        @with_auto_commit
        async def my_function(session: AsyncSession, ...):
            # No need to call session.commit() - it's automatic
            pass

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function with automatic commit/rollback
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_auto_commit "
                f"but no session argument found. Commit/rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            await _safe_rollback(session, func.__name__, e)
            raise

    return wrapper


def retry_on_conflict(
    max_attempts: int = 3,
    backoff_seconds: float = 0.05,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry a whole unit of work when it loses a lock conflict.

    The wrapped function must perform the complete transaction (including
    commit), because the session is rolled back before each retry.
    Non-conflict errors are rolled back and re-raised immediately.

    Usage:
        @retry_on_conflict(max_attempts=3)
        async def approve_purchase(self, purchase_id: int):
            ...
            await self.session.commit()

    Args:
        max_attempts: Total attempts including the first
        backoff_seconds: Base delay, doubled after every conflict

    Returns:
        Decorator

    Raises:
        ConcurrencyConflictError: All attempts lost a lock conflict
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            session = _find_session(args, kwargs)

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if session is not None:
                        await _safe_rollback(session, func.__name__, e)

                    if not is_lock_conflict(e):
                        raise

                    logger.warning(
                        f"Lock conflict in {func.__name__}",
                        extra={
                            "attempt": attempt,
                            "max_attempts": max_attempts,
                            "error": str(e),
                        },
                    )
                    if attempt == max_attempts:
                        raise ConcurrencyConflictError(
                            func.__name__, attempt
                        ) from e

                    await asyncio.sleep(backoff_seconds * 2 ** (attempt - 1))

            # Unreachable: the loop either returns or raises
            raise ConcurrencyConflictError(func.__name__, max_attempts)

        return wrapper

    return decorator
