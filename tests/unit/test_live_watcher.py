"""
Tests for the live watcher lifecycle and per-notification handling.
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.services.reconciliation.live_watcher import LiveWatcher
from app.services.reconciliation.processor import DepositProcessor
from app.services.reconciliation.types import WatcherState
from app.utils.exceptions import ProviderError, StoreError, SubscriptionError


async def settle() -> None:
    """Let the consumer task drain the queue."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def watcher(fake_provider, checkpoint, processor, receiving_address):
    return LiveWatcher(fake_provider, checkpoint, processor, receiving_address)


@pytest.mark.asyncio
async def test_attach_subscribes_from_next_block(watcher, fake_provider):
    fake_provider.head = 500

    await watcher.attach()

    assert watcher.state is WatcherState.ATTACHED
    subscription = fake_provider.subscriptions[0]
    assert subscription.start_block == 501
    assert subscription.started is True
    await watcher.detach()


@pytest.mark.asyncio
async def test_attach_twice_is_noop(watcher, fake_provider):
    await watcher.attach()
    await watcher.attach()

    assert len(fake_provider.subscriptions) == 1
    await watcher.detach()


@pytest.mark.asyncio
async def test_attach_failure_stays_detached(watcher, fake_provider):
    fake_provider.fail_head = True

    with pytest.raises(SubscriptionError):
        await watcher.attach()

    assert watcher.state is WatcherState.DETACHED
    assert isinstance(watcher.last_error, ProviderError)


@pytest.mark.asyncio
async def test_notification_credits_and_advances_checkpoint(
    watcher, fake_provider, checkpoint, ledger, transfer_factory
):
    await checkpoint.write(10)
    await watcher.attach()

    await fake_provider.subscriptions[0].push(
        transfer_factory(raw_value=1500000000000000000, block_number=42)
    )
    await settle()

    assert ledger.balance_of(1) == Decimal("1.5")
    assert await checkpoint.read() == 42
    assert watcher.processed == 1
    await watcher.detach()


@pytest.mark.asyncio
async def test_unmatched_notification_still_advances_checkpoint(
    watcher, fake_provider, checkpoint, transfer_factory, addresses
):
    await watcher.attach()

    await fake_provider.subscriptions[0].push(
        transfer_factory(from_address=addresses["stranger"], block_number=12)
    )
    await settle()

    assert await checkpoint.read() == 12
    await watcher.detach()


@pytest.mark.asyncio
async def test_bad_notification_does_not_detach(
    watcher, fake_provider, checkpoint, ledger, transfer_factory
):
    await watcher.attach()
    subscription = fake_provider.subscriptions[0]

    await subscription.push(transfer_factory(raw_value="bogus", block_number=20))
    await subscription.push(transfer_factory(block_number=21))
    await settle()

    assert watcher.state is WatcherState.ATTACHED
    assert ledger.balance_of(1) == Decimal("1")
    assert await checkpoint.read() == 21
    await watcher.detach()


@pytest.mark.asyncio
async def test_store_error_does_not_detach(
    fake_provider, checkpoint, decoder, receiving_address, transfer_factory
):
    ledger = AsyncMock()
    ledger.credit_transfer = AsyncMock(side_effect=StoreError("db down"))
    watcher = LiveWatcher(
        fake_provider, checkpoint, DepositProcessor(decoder, ledger), receiving_address
    )
    await watcher.attach()

    await fake_provider.subscriptions[0].push(transfer_factory(block_number=30))
    await settle()

    assert watcher.state is WatcherState.ATTACHED
    assert await checkpoint.read() is None
    await watcher.detach()


@pytest.mark.asyncio
async def test_subscription_drop_detaches(watcher, fake_provider):
    await watcher.attach()

    await fake_provider.subscriptions[0].fail(ProviderError("socket closed"))
    await settle()

    assert watcher.state is WatcherState.DETACHED
    assert isinstance(watcher.last_error, SubscriptionError)


@pytest.mark.asyncio
async def test_reattach_after_drop_opens_new_subscription(watcher, fake_provider):
    await watcher.attach()
    await fake_provider.subscriptions[0].fail(ProviderError("socket closed"))
    await settle()

    fake_provider.head = 900
    await watcher.attach()

    assert watcher.state is WatcherState.ATTACHED
    assert fake_provider.subscriptions[1].start_block == 901
    await watcher.detach()


@pytest.mark.asyncio
async def test_detach_cancels_subscription(watcher, fake_provider):
    await watcher.attach()

    await watcher.detach()

    assert watcher.state is WatcherState.DETACHED
    assert fake_provider.subscriptions[0].cancelled is True
