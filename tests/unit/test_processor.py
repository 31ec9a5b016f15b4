"""
Tests for the shared decode, claim and credit pipeline.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.services.reconciliation.processor import DepositProcessor
from app.services.reconciliation.types import CreditResult, CreditStatus
from app.utils.exceptions import DecodeError, StoreError


class TestDepositProcessor:
    """Tests for DepositProcessor.apply."""

    @pytest.mark.asyncio
    async def test_applies_deposit(self, processor, ledger, transfer_factory):
        result = await processor.apply(transfer_factory(raw_value=1500000000000000000))

        assert result.status is CreditStatus.APPLIED
        assert ledger.balance_of(1) == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_same_transfer_twice_is_duplicate(self, processor, ledger, transfer_factory):
        raw = transfer_factory(block_number=50)

        first = await processor.apply(raw, source="live")
        second = await processor.apply(raw, source="scan")

        assert first.status is CreditStatus.APPLIED
        assert second.status is CreditStatus.DUPLICATE
        assert ledger.balance_of(1) == Decimal("1")

    @pytest.mark.asyncio
    async def test_without_dedup_credits_every_time(self, decoder, ledger, transfer_factory):
        processor = DepositProcessor(decoder, ledger, dedup=False)
        raw = transfer_factory(block_number=50)

        await processor.apply(raw)
        await processor.apply(raw)

        assert ledger.balance_of(1) == Decimal("2")

    @pytest.mark.asyncio
    async def test_transfer_without_identity_is_not_journaled(self, processor, ledger, journal, transfer_factory):
        raw = transfer_factory(log_index=None)

        await processor.apply(raw)
        await processor.apply(raw)

        assert ledger.balance_of(1) == Decimal("2")
        assert journal.claimed == set()

    @pytest.mark.asyncio
    async def test_unmatched_deposit_is_not_journaled(self, processor, journal, transfer_factory, addresses):
        result = await processor.apply(transfer_factory(from_address=addresses["stranger"]))

        assert result.status is CreditStatus.NOT_FOUND
        assert journal.claimed == set()
        assert journal.pending == set()

    @pytest.mark.asyncio
    async def test_failed_credit_leaves_transfer_creditable(self, processor, ledger, journal, transfer_factory):
        raw = transfer_factory(block_number=50)
        ledger._credit = AsyncMock(side_effect=StoreError("connection reset"))

        with pytest.raises(StoreError):
            await processor.apply(raw)

        assert journal.claimed == set()
        assert journal.pending == set()

        del ledger._credit
        result = await processor.apply(raw)

        assert result.status is CreditStatus.APPLIED
        assert ledger.balance_of(1) == Decimal("1")

    @pytest.mark.asyncio
    async def test_dedup_uses_journaled_credit(self, decoder, transfer_factory):
        ledger = AsyncMock()
        ledger.credit_transfer = AsyncMock(return_value=CreditResult.duplicate())
        processor = DepositProcessor(decoder, ledger)

        result = await processor.apply(transfer_factory())

        assert result.status is CreditStatus.DUPLICATE
        ledger.credit_by_address.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_decode_error_propagates_without_claim(self, processor, journal, transfer_factory):
        with pytest.raises(DecodeError):
            await processor.apply(transfer_factory(raw_value="garbage"))

        assert journal.claimed == set()
