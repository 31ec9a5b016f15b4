"""
Interfaces the reconciliation services consume.

Concrete implementations live next to their technology: SQL stores in
this package, the Web3 provider in app.services.blockchain.
"""

import asyncio
from decimal import Decimal
from typing import Protocol

from app.services.reconciliation.types import CreditResult, DepositEvent, RawTransfer


class TransferSubscription(Protocol):
    """Cancellable live feed pushing RawTransfer items onto a queue.

    A None item on the queue marks the end of the feed; ``error`` then
    tells whether it ended because of a failure.
    """

    queue: asyncio.Queue[RawTransfer | None]
    error: BaseException | None

    async def start(self) -> None: ...

    async def cancel(self) -> None: ...


class TransferEventProvider(Protocol):
    """Chain access needed by the reconciler and the live watcher."""

    async def get_block_number(self) -> int: ...

    async def query_transfer_events(
        self, to_address: str, from_block: int, to_block: int
    ) -> list[RawTransfer]: ...

    def subscribe_transfers(
        self, to_address: str, start_block: int
    ) -> TransferSubscription: ...


class CheckpointStore(Protocol):
    """Durable single-value watermark."""

    async def read(self) -> int | None: ...

    async def write(self, block_number: int) -> None: ...

    async def reset(self, block_number: int) -> None: ...

    async def record_error(self, error: str) -> None: ...


class BalanceLedger(Protocol):
    """Wallet address to account mapping with per-account credit.

    ``credit_transfer`` credits a transfer at most once per
    (tx_hash, log_index); the journal entry and the credit are one
    atomic step.
    """

    async def credit_by_address(self, address: str, amount: Decimal) -> CreditResult: ...

    async def credit_transfer(self, event: DepositEvent) -> CreditResult: ...
