"""
Deposit listener entry point.

Runs the keep-alive web server, the startup reconciliation scan, the live
watcher and the periodic jobs until SIGINT or SIGTERM.

Usage:
    python -m listener.main
"""

import asyncio
import signal
import sys
from contextlib import suppress

from loguru import logger

from app.config.database import async_session_maker, engine
from app.config.settings import settings
from app.services.reconciliation.context import build_context
from app.utils.security import mask_address
from jobs.health import start_health_server
from jobs.scheduler import DepositScheduler
from listener.initialization.errors import install_exception_handler
from listener.initialization.logging import setup_logging
from listener.initialization.shutdown import shutdown_handler


async def main() -> None:
    """Initialize and run the deposit listener."""
    setup_logging(settings.log_level, settings.log_file)
    install_exception_handler()

    logger.info(
        f"Receiving address {mask_address(settings.receiving_address)}, "
        f"token decimals {settings.token_decimals}, "
        f"dedup {'on' if settings.deposit_dedup_enabled else 'off'}"
    )

    context = build_context(settings, async_session_maker)
    scheduler = DepositScheduler(
        context,
        scan_interval_seconds=settings.scan_interval_seconds,
        keepalive_interval_seconds=settings.keepalive_interval_seconds,
        self_ping_url=settings.self_ping_url,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    runner = None
    try:
        runner = await start_health_server(scheduler, settings.host, settings.port)
        await scheduler.start()
        await stop_event.wait()
    finally:
        await shutdown_handler(scheduler, runner, engine)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Listener stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Listener crashed: {e}")
        sys.exit(1)
