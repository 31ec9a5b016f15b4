"""
Listener Initialization - Global Error Handling.

Uncaught asynchronous failures are logged and never stop the process.
"""

import asyncio
from typing import Any

from loguru import logger


def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Event loop exception handler: log and keep running."""
    exception = context.get("exception")
    message = context.get("message", "Unhandled exception in event loop")
    if exception is not None:
        logger.opt(exception=exception).error(f"💥 Unhandled error: {message}")
    else:
        logger.error(f"💥 Unhandled error: {message}")


def install_exception_handler(loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Route the loop's uncaught exceptions to loguru."""
    loop = loop or asyncio.get_running_loop()
    loop.set_exception_handler(handle_loop_exception)
