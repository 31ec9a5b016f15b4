"""
Transfer journal.

In-process counterpart of the credited_transfers table. A claim stays
pending until the credit it guards is committed or aborted; a second
claimant of the same transfer waits for that outcome, the way a
concurrent insert waits on an uncommitted unique row in Postgres.
"""

import asyncio

from app.services.reconciliation.types import DepositEvent


class MemoryTransferJournal:
    """Journal of credited transfers for the in-memory ledger."""

    def __init__(self) -> None:
        self.claimed: set[tuple[str, int]] = set()
        self._pending: dict[tuple[str, int], asyncio.Event] = {}

    @property
    def pending(self) -> set[tuple[str, int]]:
        return set(self._pending)

    async def claim(self, event: DepositEvent) -> bool:
        """
        Claim a transfer for crediting.

        Returns:
            True if the caller now holds the claim and must commit or
            abort it, False if the transfer was already credited
        """
        key = require_transfer_key(event)
        while key in self._pending:
            await self._pending[key].wait()
        if key in self.claimed:
            return False
        self._pending[key] = asyncio.Event()
        return True

    def commit(self, event: DepositEvent) -> None:
        """Mark a held claim as credited."""
        key = require_transfer_key(event)
        self.claimed.add(key)
        self._pending.pop(key).set()

    def abort(self, event: DepositEvent) -> None:
        """Drop a held claim; waiting claimants retry."""
        self._pending.pop(require_transfer_key(event)).set()


def require_transfer_key(event: DepositEvent) -> tuple[str, int]:
    key = event.transfer_key
    if key is None:
        raise ValueError(
            f"Deposit in block {event.block_number} has no transaction identity"
        )
    return key
