"""
Deposit Scan Task.

One backfill reconciliation pass. Runs once at startup and then on the
scan interval (default every 4 hours).
"""

from loguru import logger

from app.services.reconciliation.ports import CheckpointStore
from app.services.reconciliation.reconciler import Reconciler
from app.services.reconciliation.types import ScanReport
from app.utils.exceptions import ScanError


async def run_deposit_scan(
    reconciler: Reconciler,
    checkpoint: CheckpointStore,
) -> ScanReport | None:
    """
    Run one reconciliation pass.

    A failed scan is logged and recorded on the checkpoint row; the same
    range is retried on the next tick.

    Args:
        reconciler: Backfill reconciler
        checkpoint: Checkpoint store for error bookkeeping

    Returns:
        Scan report, or None if the scan was aborted
    """
    try:
        return await reconciler.run()
    except ScanError as e:
        logger.error(f"⚠️ Deposit scan failed, will retry next cycle: {e}")
        try:
            await checkpoint.record_error(str(e))
        except Exception as record_error:
            logger.warning(f"Failed to record scan error: {record_error}")
        return None
