"""
Keep-alive and health check server.

``GET /`` answers the external uptime monitor with a static message.
``GET /health`` reports watcher state, checkpoint and scheduled jobs.
"""

import asyncio

from aiohttp import web
from loguru import logger

from app.config.constants import LIVENESS_MESSAGE
from jobs.scheduler import DepositScheduler

SCHEDULER_KEY = web.AppKey("deposit_scheduler", DepositScheduler)


async def root_handler(request: web.Request) -> web.Response:
    """Static liveness message."""
    return web.Response(text=f"🚀 {LIVENESS_MESSAGE}")


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with watcher, checkpoint and scheduler status
    """
    scheduler = request.app[SCHEDULER_KEY]
    context = scheduler.context

    try:
        checkpoint = await context.checkpoint.read()
    except Exception as e:
        logger.error(f"Health check failed to read checkpoint: {e}")
        return web.json_response(
            {
                "status": "unhealthy",
                "error": str(e),
                "watcher": str(context.watcher.state),
            },
            status=503,
        )

    jobs = scheduler.scheduler.get_jobs() if scheduler.running else []
    job_info = [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        }
        for job in jobs
    ]

    report = scheduler.last_report
    return web.json_response(
        {
            "status": "healthy" if scheduler.running else "starting",
            "watcher": str(context.watcher.state),
            "last_scanned_block": checkpoint,
            "scheduler_running": scheduler.running,
            "jobs": job_info,
            "last_scan": None if report is None else {
                "from_block": report.from_block,
                "to_block": report.to_block,
                "events": report.events,
                "applied": report.applied,
                "unmatched": report.unmatched,
            },
        }
    )


def create_app(scheduler: DepositScheduler) -> web.Application:
    """Build the keep-alive application."""
    app = web.Application()
    app[SCHEDULER_KEY] = scheduler
    app.router.add_get("/", root_handler)
    app.router.add_get("/health", health_handler)
    return app


async def start_health_server(
    scheduler: DepositScheduler,
    host: str = "0.0.0.0",
    port: int = 3000,
) -> web.AppRunner:
    """
    Start keep-alive server.

    Args:
        scheduler: Deposit scheduler to report on
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_app(scheduler))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"🌐 Web service listening on {host}:{port}")
    return runner


async def stop_health_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop keep-alive server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping web server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
    except TimeoutError:
        logger.warning(f"Web server cleanup timed out after {timeout}s")
    except Exception as e:
        logger.error(f"Error stopping web server: {e}")
