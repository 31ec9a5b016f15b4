"""
Value types shared by the deposit reconciliation services.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum


@dataclass(frozen=True)
class RawTransfer:
    """Transfer notification as delivered by the chain provider."""

    from_address: str | None
    to_address: str | None
    raw_value: int | str | bytes | None
    block_number: int
    tx_hash: str | None = None
    log_index: int | None = None


@dataclass(frozen=True)
class DepositEvent:
    """Decoded deposit, amount already scaled by token decimals."""

    from_address: str
    amount: Decimal
    block_number: int
    tx_hash: str | None = None
    log_index: int | None = None

    @property
    def transfer_key(self) -> tuple[str, int] | None:
        """Identity of the on-chain transfer, if the provider supplied one."""
        if self.tx_hash is None or self.log_index is None:
            return None
        return self.tx_hash.lower(), self.log_index


class CreditStatus(StrEnum):
    """Outcome of applying one deposit to the ledger."""

    APPLIED = "applied"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class CreditResult:
    """Result of a credit attempt."""

    status: CreditStatus
    account_id: int | None = None
    new_balance: Decimal | None = None

    @classmethod
    def not_found(cls) -> "CreditResult":
        return cls(CreditStatus.NOT_FOUND)

    @classmethod
    def duplicate(cls) -> "CreditResult":
        return cls(CreditStatus.DUPLICATE)


class WatcherState(StrEnum):
    """Live watcher lifecycle."""

    DETACHED = "detached"
    ATTACHED = "attached"


@dataclass
class ScanReport:
    """Summary of one backfill scan."""

    from_block: int | None = None
    to_block: int | None = None
    events: int = 0
    applied: int = 0
    unmatched: int = 0
    failed: int = 0
    duplicates: int = 0
    bootstrapped: bool = False

    def count(self, result: CreditResult) -> None:
        """Tally a credit result."""
        if result.status is CreditStatus.APPLIED:
            self.applied += 1
        elif result.status is CreditStatus.NOT_FOUND:
            self.unmatched += 1
        else:
            self.duplicates += 1
