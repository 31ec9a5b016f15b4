"""
Deposit context.

Explicit wiring of the provider, stores and services, built once by the
entry point and handed to the scheduler.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import Settings
from app.services.blockchain.transfer_provider import Web3TransferProvider
from app.services.reconciliation.balance_ledger import SqlBalanceLedger
from app.services.reconciliation.checkpoint_store import SqlCheckpointStore
from app.services.reconciliation.event_decoder import EventDecoder
from app.services.reconciliation.live_watcher import LiveWatcher
from app.services.reconciliation.ports import (
    BalanceLedger,
    CheckpointStore,
    TransferEventProvider,
)
from app.services.reconciliation.processor import DepositProcessor
from app.services.reconciliation.reconciler import Reconciler


@dataclass
class DepositContext:
    """Everything the deposit listener needs at runtime."""

    provider: TransferEventProvider
    checkpoint: CheckpointStore
    ledger: BalanceLedger
    dedup_enabled: bool
    reconciler: Reconciler
    watcher: LiveWatcher
    receiving_address: str


def assemble_context(
    provider: TransferEventProvider,
    checkpoint: CheckpointStore,
    ledger: BalanceLedger,
    receiving_address: str,
    decimals: int,
    dedup_enabled: bool = True,
) -> DepositContext:
    """Wire services on top of already built provider and stores."""
    processor = DepositProcessor(EventDecoder(decimals), ledger, dedup=dedup_enabled)
    receiving_address = receiving_address.lower()
    return DepositContext(
        provider=provider,
        checkpoint=checkpoint,
        ledger=ledger,
        dedup_enabled=dedup_enabled,
        reconciler=Reconciler(provider, checkpoint, processor, receiving_address),
        watcher=LiveWatcher(provider, checkpoint, processor, receiving_address),
        receiving_address=receiving_address,
    )


def build_context(
    settings: Settings,
    session_maker: async_sessionmaker[AsyncSession],
) -> DepositContext:
    """
    Build the production context: Web3 provider and SQL stores.

    Args:
        settings: Application settings
        session_maker: Session factory for the listener database

    Returns:
        Wired deposit context
    """
    timeout = settings.store_timeout_seconds
    return assemble_context(
        provider=Web3TransferProvider.from_settings(settings),
        checkpoint=SqlCheckpointStore(session_maker, timeout=timeout),
        ledger=SqlBalanceLedger(session_maker, timeout=timeout),
        receiving_address=settings.receiving_address,
        decimals=settings.token_decimals,
        dedup_enabled=settings.deposit_dedup_enabled,
    )
