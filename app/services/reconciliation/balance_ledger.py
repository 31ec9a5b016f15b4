"""
Balance ledger.

Resolves a sender address to an account through the normalized wallet
index and credits the account atomically. ``credit_by_address`` performs
no deduplication; ``credit_transfer`` journals the transfer by
(tx_hash, log_index) in the same transaction as the credit.
"""

from collections import defaultdict
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import STORE_CALL_TIMEOUT
from app.models.user import normalize_address
from app.repositories.credited_transfer_repository import CreditedTransferRepository
from app.repositories.user_repository import UserRepository
from app.services.reconciliation.transfer_journal import (
    MemoryTransferJournal,
    require_transfer_key,
)
from app.services.reconciliation.types import CreditResult, CreditStatus, DepositEvent
from app.utils.db_decorators import store_operation
from app.utils.security import mask_address, mask_tx_hash


class SqlBalanceLedger:
    """Ledger backed by the users and credited_transfers tables."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        timeout: float = STORE_CALL_TIMEOUT,
    ) -> None:
        self.session_maker = session_maker
        self.timeout = timeout

    @store_operation("credit balance")
    async def credit_by_address(
        self, session: AsyncSession, address: str, amount: Decimal
    ) -> CreditResult:
        """
        Credit the first account bound to address.

        Args:
            address: Sender wallet address (any case)
            amount: Amount in token units

        Returns:
            APPLIED with the new balance, or NOT_FOUND

        Raises:
            StoreError: If the database is unreachable
        """
        repo = UserRepository(session)
        user = await repo.find_by_wallet_address(address)
        if user is None:
            return CreditResult.not_found()

        new_balance = await repo.credit_balance(user.id, amount)
        if new_balance is None:
            return CreditResult.not_found()

        logger.debug(
            f"Credited user {user.id} ({mask_address(address)}) with {amount}"
        )
        return CreditResult(CreditStatus.APPLIED, user.id, new_balance)

    @store_operation("credit transfer")
    async def credit_transfer(
        self, session: AsyncSession, event: DepositEvent
    ) -> CreditResult:
        """
        Credit a transfer at most once.

        The journal row and the balance update share one transaction, so
        a failed credit never leaves a claim behind. A concurrent claimant
        of the same transfer blocks on the uncommitted row and sees it
        only once the credit has committed.

        Args:
            event: Decoded deposit with a transaction identity

        Returns:
            APPLIED, NOT_FOUND, or DUPLICATE if already credited

        Raises:
            StoreError: If the database is unreachable
        """
        tx_hash, log_index = require_transfer_key(event)
        users = UserRepository(session)
        journal = CreditedTransferRepository(session)

        user = await users.find_by_wallet_address(event.from_address)
        if user is None:
            return CreditResult.not_found()

        claimed = await journal.claim(
            tx_hash,
            log_index,
            block_number=event.block_number,
            from_address=event.from_address,
            amount=event.amount,
        )
        if not claimed:
            return CreditResult.duplicate()

        new_balance = await users.credit_balance(user.id, event.amount)
        if new_balance is None:
            # User removed since the lookup; keep the transfer creditable
            await journal.release(tx_hash, log_index)
            return CreditResult.not_found()

        logger.debug(
            f"Credited user {user.id} with {event.amount} from "
            f"{mask_tx_hash(tx_hash)}#{log_index}"
        )
        return CreditResult(CreditStatus.APPLIED, user.id, new_balance)


class MemoryBalanceLedger:
    """
    In-process ledger for tests and dry runs.

    Keeps the same normalized index the SQL ledger gets from the
    wallet_address_lower column.
    """

    def __init__(self) -> None:
        self.balances: dict[int, Decimal] = {}
        self.wallets: dict[int, str | None] = {}
        self.journal = MemoryTransferJournal()
        self._index: dict[str, list[int]] = defaultdict(list)

    def add_account(
        self,
        account_id: int,
        wallet_address: str | None = None,
        balance: Decimal = Decimal("0"),
    ) -> None:
        """Register an account, optionally bound to a wallet."""
        self.balances[account_id] = Decimal(balance)
        self.wallets[account_id] = None
        if wallet_address is not None:
            self.bind_wallet(account_id, wallet_address)

    def bind_wallet(self, account_id: int, wallet_address: str | None) -> None:
        """Bind (or unbind with None) a wallet, keeping the index current."""
        previous = normalize_address(self.wallets.get(account_id))
        if previous and account_id in self._index[previous]:
            self._index[previous].remove(account_id)

        self.wallets[account_id] = wallet_address
        normalized = normalize_address(wallet_address)
        if normalized:
            self._index[normalized].append(account_id)
            self._index[normalized].sort()

    def balance_of(self, account_id: int) -> Decimal:
        return self.balances[account_id]

    async def credit_by_address(self, address: str, amount: Decimal) -> CreditResult:
        account_id = self._resolve(address)
        if account_id is None:
            return CreditResult.not_found()
        return await self._credit(account_id, amount)

    async def credit_transfer(self, event: DepositEvent) -> CreditResult:
        account_id = self._resolve(event.from_address)
        if account_id is None:
            return CreditResult.not_found()

        if not await self.journal.claim(event):
            return CreditResult.duplicate()
        try:
            result = await self._credit(account_id, event.amount)
        except BaseException:
            self.journal.abort(event)
            raise
        self.journal.commit(event)
        return result

    def _resolve(self, address: str) -> int | None:
        normalized = normalize_address(address)
        account_ids = self._index.get(normalized) if normalized else None
        return account_ids[0] if account_ids else None

    async def _credit(self, account_id: int, amount: Decimal) -> CreditResult:
        self.balances[account_id] += amount
        return CreditResult(CreditStatus.APPLIED, account_id, self.balances[account_id])
