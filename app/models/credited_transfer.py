"""
Credited transfer model.

Journal of on-chain transfers already applied to balances, keyed by
(tx_hash, log_index). Lets both ingestion paths skip a transfer the other
one has already credited.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import TokenAmountType


class CreditedTransfer(Base):
    """One claimed on-chain transfer."""

    __tablename__ = "credited_transfers"
    __table_args__ = (
        UniqueConstraint(
            "tx_hash", "log_index", name="uq_credited_transfers_tx_log"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    tx_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)
    block_number: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True
    )
    from_address: Mapped[str] = mapped_column(String(42), nullable=False)
    amount: Mapped[Decimal] = mapped_column(TokenAmountType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
