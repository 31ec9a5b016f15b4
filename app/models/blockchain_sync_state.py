"""
Blockchain Sync State model.

Persists the scan watermark of the deposit listener.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class BlockchainSyncState(Base):
    """
    Tracks blockchain synchronization state.

    Used to:
    - Know which blocks have been fully applied to balances
    - Resume scanning after restart
    - Keep the last scan error for diagnostics
    """

    __tablename__ = "blockchain_sync_state"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Checkpoint identification
    name: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )

    # All events up to and including this block have been applied
    last_scanned_block: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
