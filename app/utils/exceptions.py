"""
Exception handling utilities.

Defines the deposit listener error taxonomy and the categories of
third-party exceptions that map onto it.
"""

import asyncio

from aiohttp import ClientError
from loguru import logger
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from web3.exceptions import Web3Exception


class DepositListenerError(Exception):
    """Base exception for deposit listener errors."""
    pass


class DecodeError(DepositListenerError):
    """Raised when a transfer notification cannot be decoded."""
    pass


class StoreError(DepositListenerError):
    """Raised when the checkpoint or ledger store is unreachable."""
    pass


class ProviderError(DepositListenerError):
    """Raised when the chain provider is unreachable or returns garbage."""
    pass


class ScanError(DepositListenerError):
    """Raised when a backfill scan aborts without advancing the checkpoint."""
    pass


class SubscriptionError(DepositListenerError):
    """Raised when the live transfer feed drops."""
    pass


# Exception categories based on handling strategy

# Persistence unreachable - abort the cycle, retry on next tick.
# Data errors (overflow, constraint violations) are per-event failures.
STORE_FAILURES = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    OSError,
    TimeoutError,
)

# Chain provider unreachable - abort the cycle, retry on next tick
PROVIDER_FAILURES = (
    Web3Exception,
    ClientError,
    OSError,
    TimeoutError,
)


def is_store_failure(exc: BaseException) -> bool:
    """
    Check if exception means the store could not be reached.

    Args:
        exc: Exception to check

    Returns:
        True if exception is a persistence connectivity failure
    """
    return isinstance(exc, STORE_FAILURES)


def is_provider_failure(exc: BaseException) -> bool:
    """
    Check if exception means the chain provider could not be reached.

    Args:
        exc: Exception to check

    Returns:
        True if exception is a provider connectivity failure
    """
    return isinstance(exc, PROVIDER_FAILURES)


def log_task_failure(task: asyncio.Task) -> None:
    """Done-callback that logs a background task's exception."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.opt(exception=exc).error(f"Background task {task.get_name()} failed: {exc}")
