"""
User repository.

Data access layer for User model.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, normalize_address
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with wallet lookups and balance credit."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def find_by_wallet_address(
        self, wallet_address: str
    ) -> User | None:
        """
        Find user by wallet address (case-insensitive).

        Uses the indexed lower-cased column. If several users share the
        address, the one with the lowest id wins.

        Args:
            wallet_address: Wallet address (any case)

        Returns:
            User or None
        """
        normalized = normalize_address(wallet_address)
        if not normalized:
            return None
        stmt = (
            select(User)
            .where(User.wallet_address_lower == normalized)
            .order_by(User.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def credit_balance(
        self, user_id: int, amount: Decimal
    ) -> Decimal | None:
        """
        Atomically add amount to the user's balance.

        Single UPDATE ... SET balance = balance + amount, so concurrent
        credits to the same user never lose an update.

        Args:
            user_id: User ID
            amount: Amount to add

        Returns:
            New balance, or None if the user vanished
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + amount)
            .returning(User.balance)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
