"""
Live watcher.

Consumes the live transfer subscription in a dedicated task and applies
each deposit as soon as it arrives. There is no replay: whatever is missed
while detached is left to the next backfill scan.
"""

import asyncio

from loguru import logger

from app.services.reconciliation.ports import (
    CheckpointStore,
    TransferEventProvider,
    TransferSubscription,
)
from app.services.reconciliation.processor import DepositProcessor
from app.services.reconciliation.types import RawTransfer, WatcherState
from app.utils.exceptions import DecodeError, SubscriptionError, log_task_failure


class LiveWatcher:
    """Subscription consumer with a DETACHED/ATTACHED lifecycle."""

    def __init__(
        self,
        provider: TransferEventProvider,
        checkpoint: CheckpointStore,
        processor: DepositProcessor,
        receiving_address: str,
    ) -> None:
        self.provider = provider
        self.checkpoint = checkpoint
        self.processor = processor
        self.receiving_address = receiving_address

        self.state = WatcherState.DETACHED
        self.last_error: BaseException | None = None
        self.processed = 0
        self._subscription: TransferSubscription | None = None
        self._task: asyncio.Task | None = None

    @property
    def attached(self) -> bool:
        return self.state is WatcherState.ATTACHED

    async def attach(self) -> None:
        """
        Open the subscription at head + 1 and start the processing loop.

        No-op when already attached.

        Raises:
            SubscriptionError: If the subscription cannot be opened
        """
        if self.attached:
            return

        try:
            head = await self.provider.get_block_number()
            subscription = self.provider.subscribe_transfers(
                self.receiving_address, head + 1
            )
            await subscription.start()
        except Exception as e:
            self.last_error = e
            raise SubscriptionError(f"Failed to attach live watcher: {e}") from e

        self._subscription = subscription
        self.last_error = None
        self.state = WatcherState.ATTACHED
        self._task = asyncio.create_task(
            self._consume(subscription), name="live_watcher"
        )
        self._task.add_done_callback(log_task_failure)
        logger.info(f"👂 Live watcher attached from block {head + 1}")

    async def detach(self) -> None:
        """Cancel the subscription and the processing loop."""
        subscription, task = self._subscription, self._task
        self._subscription = None
        self._task = None
        self.state = WatcherState.DETACHED

        if subscription is not None:
            await subscription.cancel()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Live watcher detached")

    async def _consume(self, subscription: TransferSubscription) -> None:
        while True:
            raw = await subscription.queue.get()
            if raw is None:
                break
            await self.handle(raw)

        if subscription is not self._subscription:
            return

        self.state = WatcherState.DETACHED
        if subscription.error is not None:
            self.last_error = SubscriptionError(str(subscription.error))
            logger.error(
                f"🔌 Live subscription dropped: {subscription.error}. "
                f"Missed deposits will be picked up by the next scan"
            )
        else:
            logger.warning("Live subscription ended")

    async def handle(self, raw: RawTransfer) -> None:
        """
        Apply one live notification and advance the checkpoint to its block.

        Errors are logged and never stop the watcher.
        """
        try:
            await self.processor.apply(raw, source="live")
            await self.checkpoint.write(raw.block_number)
            self.processed += 1
        except DecodeError as e:
            logger.error(f"⚠️ Skipping malformed live transfer in block {raw.block_number}: {e}")
        except Exception as e:
            logger.exception(
                f"⚠️ Error handling live deposit in block {raw.block_number}: {e}"
            )
