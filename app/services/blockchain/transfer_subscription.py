"""
Polling transfer subscription.

Live feed of Transfer events built on eth_getLogs polling from its own
block cursor. Items are pushed onto a bounded asyncio.Queue so that a slow
consumer applies back-pressure to the poller.
"""

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from app.services.reconciliation.types import RawTransfer
from app.utils.exceptions import ProviderError, SubscriptionError, log_task_failure

if TYPE_CHECKING:
    from app.services.blockchain.transfer_provider import Web3TransferProvider


class PollingTransferSubscription:
    """
    Cancellable live subscription.

    Transient poll failures are retried from the same cursor. After
    ``max_failures`` consecutive failures the subscription ends: ``error``
    is set and a None item is queued.
    """

    def __init__(
        self,
        provider: "Web3TransferProvider",
        to_address: str,
        start_block: int,
        poll_interval: float = 3.0,
        max_failures: int = 10,
        queue_size: int = 1000,
    ) -> None:
        self.provider = provider
        self.to_address = to_address
        self.cursor = start_block
        self.poll_interval = poll_interval
        self.max_failures = max_failures

        self.queue: asyncio.Queue[RawTransfer | None] = asyncio.Queue(maxsize=queue_size)
        self.error: BaseException | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start polling in a background task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="transfer_subscription")
        self._task.add_done_callback(log_task_failure)

    async def cancel(self) -> None:
        """Stop polling. No further items are queued."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def poll_once(self) -> int:
        """
        Fetch transfers from the cursor up to the current head.

        Returns:
            Number of transfers queued

        Raises:
            ProviderError: If the node is unreachable
        """
        head = await self.provider.get_block_number()
        if head < self.cursor:
            return 0

        transfers = await self.provider.query_transfer_events(
            self.to_address, self.cursor, head
        )
        for transfer in transfers:
            await self.queue.put(transfer)
        self.cursor = head + 1
        return len(transfers)

    async def _run(self) -> None:
        failures = 0
        try:
            while True:
                try:
                    await self.poll_once()
                    failures = 0
                except ProviderError as e:
                    failures += 1
                    logger.warning(
                        f"Live poll failed ({failures}/{self.max_failures}) "
                        f"at block {self.cursor}: {e}"
                    )
                    if failures >= self.max_failures:
                        raise SubscriptionError(
                            f"Live subscription gave up after {failures} failed polls: {e}"
                        ) from e
                await asyncio.sleep(self.poll_interval)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.error = e
            await self.queue.put(None)
