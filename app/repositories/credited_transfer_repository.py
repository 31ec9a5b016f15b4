"""
Credited transfer repository.

Data access layer for the transfer idempotency journal.
"""

from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.credited_transfer import CreditedTransfer
from app.repositories.base import BaseRepository


class CreditedTransferRepository(BaseRepository[CreditedTransfer]):
    """Journal of transfers already credited."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize credited transfer repository."""
        super().__init__(CreditedTransfer, session)

    async def claim(
        self,
        tx_hash: str,
        log_index: int,
        block_number: int,
        from_address: str,
        amount: Decimal,
    ) -> bool:
        """
        Insert the journal row unless it already exists.

        Args:
            tx_hash: Lower-cased transaction hash
            log_index: Log index within the transaction
            block_number: Block the transfer was mined in
            from_address: Sender address
            amount: Credited amount in token units

        Returns:
            True if this call created the row, False if it existed
        """
        stmt = (
            insert(CreditedTransfer)
            .values(
                tx_hash=tx_hash,
                log_index=log_index,
                block_number=block_number,
                from_address=from_address.lower(),
                amount=amount,
            )
            .on_conflict_do_nothing(constraint="uq_credited_transfers_tx_log")
            .returning(CreditedTransfer.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def release(self, tx_hash: str, log_index: int) -> bool:
        """
        Delete a claim whose credit did not go through.

        Returns:
            True if a row was deleted
        """
        stmt = delete(CreditedTransfer).where(
            CreditedTransfer.tx_hash == tx_hash,
            CreditedTransfer.log_index == log_index,
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
