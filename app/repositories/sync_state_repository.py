"""
Sync state repository.

Data access layer for the scan watermark.
"""

from datetime import UTC, datetime

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.blockchain_sync_state import BlockchainSyncState
from app.repositories.base import BaseRepository


class SyncStateRepository(BaseRepository[BlockchainSyncState]):
    """Watermark storage keyed by checkpoint name."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize sync state repository."""
        super().__init__(BlockchainSyncState, session)

    async def get_last_scanned_block(self, name: str) -> int | None:
        """
        Get stored watermark.

        Args:
            name: Checkpoint name

        Returns:
            Last scanned block or None if never written
        """
        state = await self.get_by(name=name)
        return state.last_scanned_block if state else None

    async def advance(self, name: str, block_number: int) -> None:
        """
        Raise the watermark to block_number, never lowering it.

        One INSERT ... ON CONFLICT DO UPDATE with GREATEST, so two writers
        racing each other still leave the higher value.

        Args:
            name: Checkpoint name
            block_number: Candidate watermark
        """
        now = datetime.now(UTC)
        stmt = insert(BlockchainSyncState).values(
            name=name,
            last_scanned_block=block_number,
            error_count=0,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[BlockchainSyncState.name],
            set_={
                "last_scanned_block": func.greatest(
                    BlockchainSyncState.last_scanned_block,
                    stmt.excluded.last_scanned_block,
                ),
                "updated_at": now,
            },
        )
        await self.session.execute(stmt)

    async def reset(self, name: str, block_number: int) -> None:
        """
        Set the watermark unconditionally (explicit rewind).

        Args:
            name: Checkpoint name
            block_number: New watermark
        """
        now = datetime.now(UTC)
        stmt = insert(BlockchainSyncState).values(
            name=name,
            last_scanned_block=block_number,
            error_count=0,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[BlockchainSyncState.name],
            set_={
                "last_scanned_block": stmt.excluded.last_scanned_block,
                "last_error": None,
                "updated_at": now,
            },
        )
        await self.session.execute(stmt)

    async def record_error(self, name: str, error: str) -> None:
        """
        Store the last scan error for diagnostics.

        Args:
            name: Checkpoint name
            error: Error description
        """
        stmt = (
            update(BlockchainSyncState)
            .where(BlockchainSyncState.name == name)
            .values(
                last_error=error,
                error_count=BlockchainSyncState.error_count + 1,
                updated_at=datetime.now(UTC),
            )
        )
        await self.session.execute(stmt)
