"""
Shared fixtures for integration tests.

Wires the real reconciler, live watcher and scheduler over in-memory
stores and the fake chain provider.
"""

from decimal import Decimal

import pytest

from app.services.reconciliation.balance_ledger import MemoryBalanceLedger
from app.services.reconciliation.checkpoint_store import MemoryCheckpointStore
from app.services.reconciliation.context import assemble_context


@pytest.fixture
def build(fake_provider, receiving_address, addresses):
    """Factory: build_context-like wiring with or without transfer deduplication."""

    def _build(dedup: bool = True, checkpoint_value: int | None = None):
        ledger = MemoryBalanceLedger()
        ledger.add_account(1, addresses["alice"])
        ledger.add_account(2, addresses["bob"], balance=Decimal("0"))
        return assemble_context(
            provider=fake_provider,
            checkpoint=MemoryCheckpointStore(checkpoint_value),
            ledger=ledger,
            receiving_address=receiving_address,
            decimals=18,
            dedup_enabled=dedup,
        )

    return _build
