"""
RPC Wrapper with Timeout.

Bounds every external call (RPC node or database) so a hung connection
can never stall a scan or the live watcher forever.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

from app.config.constants import RPC_CALL_TIMEOUT

T = TypeVar("T")


class CallTimeoutError(TimeoutError):
    """Raised when an external call times out."""
    pass


async def with_timeout(
    coro: Awaitable[T],
    timeout: float = RPC_CALL_TIMEOUT,
    operation_name: str = "RPC call",
) -> T:
    """
    Execute async coroutine with timeout.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds (default: RPC_CALL_TIMEOUT)
        operation_name: Operation name for logging

    Returns:
        Result of the coroutine

    Raises:
        CallTimeoutError: If operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError as e:
        error_msg = f"{operation_name} timed out after {timeout}s"
        logger.error(error_msg)
        raise CallTimeoutError(error_msg) from e
