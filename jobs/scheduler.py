"""
Deposit scheduler.

Drives the backfill scan on a fixed interval, keeps the live watcher
attached and sends the keep-alive self-ping.
"""

from apscheduler.events import EVENT_JOB_ERROR, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.config.constants import (
    DEFAULT_KEEPALIVE_INTERVAL_SECONDS,
    DEFAULT_SCAN_INTERVAL_SECONDS,
    KEEPALIVE_JOB_ID,
    SCAN_JOB_ID,
    WATCHDOG_JOB_ID,
)
from app.services.reconciliation.context import DepositContext
from app.services.reconciliation.types import ScanReport
from app.utils.exceptions import SubscriptionError
from jobs.tasks.deposit_scan_task import run_deposit_scan
from jobs.tasks.keepalive_task import self_ping


class DepositScheduler:
    """
    Process-lifetime job runner.

    The scan job and the live watcher run independently of each other;
    ``max_instances=1`` only keeps a scan from overlapping itself.
    """

    def __init__(
        self,
        context: DepositContext,
        scan_interval_seconds: int = DEFAULT_SCAN_INTERVAL_SECONDS,
        keepalive_interval_seconds: int = DEFAULT_KEEPALIVE_INTERVAL_SECONDS,
        self_ping_url: str | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self.context = context
        self.scan_interval_seconds = scan_interval_seconds
        self.keepalive_interval_seconds = keepalive_interval_seconds
        self.self_ping_url = self_ping_url

        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self.last_report: ScanReport | None = None

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def start(self) -> None:
        """
        Attach the live watcher, run the startup scan and schedule jobs.

        Returns once the startup scan has finished. Startup failures are
        logged and left to the periodic jobs to recover.
        """
        logger.info("🚀 Starting deposit listener...")

        await self.ensure_watcher()
        try:
            await self.scan()
        except Exception as e:
            logger.exception(f"❌ Startup scan failed, next attempt on scan tick: {e}")

        self.scheduler.add_job(
            self.scan,
            trigger=IntervalTrigger(seconds=self.scan_interval_seconds),
            id=SCAN_JOB_ID,
            name="Deposit reconciliation scan",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.ensure_watcher,
            trigger=IntervalTrigger(seconds=self.keepalive_interval_seconds),
            id=WATCHDOG_JOB_ID,
            name="Live watcher watchdog",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

        if self.self_ping_url:
            await self.keepalive()
            self.scheduler.add_job(
                self.keepalive,
                trigger=IntervalTrigger(seconds=self.keepalive_interval_seconds),
                id=KEEPALIVE_JOB_ID,
                name="Keep-alive self-ping",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )

        self.scheduler.start()
        logger.success(
            f"✅ Deposit listener active: scan every {self.scan_interval_seconds}s, "
            f"watcher {self.context.watcher.state}"
        )

    async def scan(self) -> ScanReport | None:
        """Run one reconciliation pass."""
        report = await run_deposit_scan(self.context.reconciler, self.context.checkpoint)
        if report is not None:
            self.last_report = report
        return report

    async def ensure_watcher(self) -> None:
        """Re-attach the live watcher if it is detached."""
        watcher = self.context.watcher
        if watcher.attached:
            return
        try:
            await watcher.attach()
        except SubscriptionError as e:
            logger.warning(f"Live watcher not attached, next attempt on watchdog tick: {e}")

    async def keepalive(self) -> None:
        await self_ping(self.self_ping_url)

    async def shutdown(self) -> None:
        """Stop jobs and detach the live watcher."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        await self.context.watcher.detach()
        logger.info("Deposit scheduler stopped")

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        logger.opt(exception=event.exception).error(
            f"💥 Job {event.job_id} failed: {event.exception}"
        )
