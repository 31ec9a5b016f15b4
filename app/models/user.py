"""
User model.

Represents an account in the external user directory. The listener only
reads the bound wallet address and credits the balance.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.models.base import Base
from app.models.types import TokenAmountType


class User(Base):
    """User model - accounts that may receive deposits."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'balance >= 0', name='check_user_balance_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Wallet binding (optional, many users never bind one)
    wallet_address: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    # Lower-cased copy of wallet_address, the lookup index for deposits
    wallet_address_lower: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )

    # Balance
    balance: Mapped[Decimal] = mapped_column(
        TokenAmountType, default=Decimal("0"), nullable=False
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

    @validates("wallet_address")
    def _sync_wallet_index(self, key: str, value: str | None) -> str | None:
        """Keep the normalized lookup column in step with wallet_address."""
        self.wallet_address_lower = normalize_address(value)
        return value

    @property
    def masked_wallet(self) -> str:
        """
        Get masked wallet address for display.

        Returns:
            Masked wallet address (first 10 + ... + last 8)
        """
        if not self.wallet_address:
            return "-"
        if len(self.wallet_address) > 20:
            return f"{self.wallet_address[:10]}...{self.wallet_address[-8:]}"
        return self.wallet_address

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, wallet={self.masked_wallet}, "
            f"balance={self.balance})>"
        )


def normalize_address(address: str | None) -> str | None:
    """Normalize wallet address for case-insensitive matching."""
    if address is None:
        return None
    stripped = address.strip()
    return stripped.lower() if stripped else None
