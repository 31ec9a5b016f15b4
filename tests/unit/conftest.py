"""
Shared fixtures for unit tests.

This module provides in-memory collaborators used across test modules:
- Balance ledger with a couple of bound accounts
- Checkpoint store
- Transfer journal owned by the ledger
- Decoder and processor wired to them
"""

from decimal import Decimal

import pytest

from app.services.reconciliation.balance_ledger import MemoryBalanceLedger
from app.services.reconciliation.checkpoint_store import MemoryCheckpointStore
from app.services.reconciliation.event_decoder import EventDecoder
from app.services.reconciliation.processor import DepositProcessor


@pytest.fixture
def ledger(addresses):
    """
    Ledger with alice (id 1) and bob (id 2) bound, and id 3 without wallet.

    Returns:
        MemoryBalanceLedger: Ledger for testing
    """
    ledger = MemoryBalanceLedger()
    ledger.add_account(1, addresses["alice"].lower())
    ledger.add_account(2, addresses["bob"], balance=Decimal("5"))
    ledger.add_account(3)
    return ledger


@pytest.fixture
def checkpoint():
    """Empty in-memory checkpoint."""
    return MemoryCheckpointStore()


@pytest.fixture
def journal(ledger):
    """Transfer journal of the in-memory ledger."""
    return ledger.journal


@pytest.fixture
def decoder():
    """Decoder for an 18-decimals token."""
    return EventDecoder(18)


@pytest.fixture
def processor(decoder, ledger):
    """Processor with transfer deduplication enabled."""
    return DepositProcessor(decoder, ledger)
