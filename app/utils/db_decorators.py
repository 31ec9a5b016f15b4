"""
Database decorators for session handling and error mapping.

Each decorated store method runs in its own short session that is
committed on success and rolled back on error, so every step of a scan
is committed independently.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.blockchain.rpc_wrapper import with_timeout
from app.utils.exceptions import StoreError, is_store_failure


T = TypeVar("T")


def store_operation(operation_name: str) -> Callable[..., Callable[..., Any]]:
    """
    Decorator that gives a store method its own committed session.

    The decorated method must live on an object with ``session_maker``
    and ``timeout`` attributes and take the session as its first argument
    after ``self``; callers do not pass it.

    Usage:
        @store_operation("read checkpoint")
        async def read(self, session: AsyncSession) -> int | None:
            ...

        value = await store.read()

    The decorator will:
    1. Open a session from self.session_maker
    2. Run the method with the session, bounded by self.timeout
    3. Commit on success, roll back on error
    4. Re-raise connectivity failures as StoreError

    Args:
        operation_name: Operation name for logs and error messages
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            async def _run() -> Any:
                async with self.session_maker() as session:
                    try:
                        result = await func(self, session, *args, **kwargs)
                        await session.commit()
                        return result
                    except Exception:
                        await _safe_rollback(session, operation_name)
                        raise

            try:
                return await with_timeout(
                    _run(),
                    timeout=self.timeout,
                    operation_name=operation_name,
                )
            except StoreError:
                raise
            except Exception as e:
                if is_store_failure(e):
                    raise StoreError(f"{operation_name} failed: {e}") from e
                raise

        return wrapper
    return decorator


async def _safe_rollback(session: AsyncSession, operation_name: str) -> None:
    """Roll back without masking the original error."""
    try:
        await session.rollback()
    except Exception as rollback_error:
        logger.error(
            f"Failed to rollback in {operation_name}: {rollback_error}",
            exc_info=True,
        )
