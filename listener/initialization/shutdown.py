"""
Listener Initialization - Shutdown Module.

Handles graceful shutdown of the listener.
Stops jobs, the web server, the chain client and database connections.
"""

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from app.services.blockchain.transfer_provider import Web3TransferProvider
from jobs.health import stop_health_server
from jobs.scheduler import DepositScheduler


async def shutdown_handler(
    scheduler: DepositScheduler | None,
    runner: web.AppRunner | None,
    engine: AsyncEngine,
) -> None:
    """Handle graceful shutdown."""
    logger.info("Graceful shutdown initiated...")

    if scheduler is not None:
        try:
            await scheduler.shutdown()
        except Exception as e:
            logger.warning(f"Error stopping scheduler: {e}")

        provider = scheduler.context.provider
        if isinstance(provider, Web3TransferProvider):
            try:
                await provider.close()
            except Exception as e:
                logger.warning(f"Error closing chain provider: {e}")

    if runner is not None:
        await stop_health_server(runner)

    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Error closing database: {e}")

    logger.info("Graceful shutdown complete")
