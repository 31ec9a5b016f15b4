"""
Deposit reconciliation services.

Backfill scan and live watcher over one token's Transfer events, sharing
a checkpoint store and a balance ledger that can journal credited
transfers.
"""

from app.services.reconciliation.balance_ledger import (
    MemoryBalanceLedger,
    SqlBalanceLedger,
)
from app.services.reconciliation.checkpoint_store import (
    MemoryCheckpointStore,
    SqlCheckpointStore,
)
from app.services.reconciliation.event_decoder import EventDecoder
from app.services.reconciliation.live_watcher import LiveWatcher
from app.services.reconciliation.processor import DepositProcessor
from app.services.reconciliation.reconciler import Reconciler
from app.services.reconciliation.transfer_journal import MemoryTransferJournal
from app.services.reconciliation.types import (
    CreditResult,
    CreditStatus,
    DepositEvent,
    RawTransfer,
    ScanReport,
    WatcherState,
)

__all__ = [
    "CreditResult",
    "CreditStatus",
    "DepositEvent",
    "DepositProcessor",
    "EventDecoder",
    "LiveWatcher",
    "MemoryBalanceLedger",
    "MemoryCheckpointStore",
    "MemoryTransferJournal",
    "RawTransfer",
    "Reconciler",
    "ScanReport",
    "SqlBalanceLedger",
    "SqlCheckpointStore",
    "WatcherState",
]
