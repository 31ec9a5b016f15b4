"""
Keep-alive task.

Pings the service's own public URL so that hosting platforms which idle
unused web services keep the listener running.
"""

import aiohttp
from loguru import logger

from app.config.constants import SELF_PING_TIMEOUT
from app.utils.security import mask_url


async def self_ping(
    url: str | None,
    timeout: float = SELF_PING_TIMEOUT,
    session: aiohttp.ClientSession | None = None,
) -> int | None:
    """
    Send one GET request to url.

    Args:
        url: Public URL of this service, or None to skip
        timeout: Request timeout in seconds
        session: Optional shared client session

    Returns:
        HTTP status, or None if skipped or failed
    """
    if not url:
        return None

    own_session = session is None
    if own_session:
        session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout)
        )

    try:
        async with session.get(url) as response:
            logger.info(f"🤖 Self-ping {mask_url(url)} - Status: {response.status}")
            return response.status
    except (aiohttp.ClientError, TimeoutError) as e:
        logger.warning(f"⚠️ Self-ping failed: {e}")
        return None
    finally:
        if own_session:
            await session.close()
