"""
Deposit processor.

Shared decode and credit pipeline used by both ingestion paths.
"""

from loguru import logger

from app.services.reconciliation.event_decoder import EventDecoder
from app.services.reconciliation.ports import BalanceLedger
from app.services.reconciliation.types import CreditResult, CreditStatus, RawTransfer
from app.utils.security import mask_address, mask_tx_hash


class DepositProcessor:
    """
    Applies one raw transfer to the ledger.

    With dedup enabled each transfer is credited through the ledger's
    journaled credit, so a second presentation of the same
    (tx_hash, log_index) is reported as DUPLICATE. Without dedup, or for
    a transfer with no transaction identity, every presentation is
    credited again.
    """

    def __init__(
        self,
        decoder: EventDecoder,
        ledger: BalanceLedger,
        dedup: bool = True,
    ) -> None:
        self.decoder = decoder
        self.ledger = ledger
        self.dedup = dedup

    async def apply(self, raw: RawTransfer, source: str = "scan") -> CreditResult:
        """
        Decode and credit one transfer.

        Args:
            raw: Transfer notification
            source: Ingestion path name for logs ("scan" or "live")

        Returns:
            Credit result

        Raises:
            DecodeError: If the notification is malformed
            StoreError: If the ledger is unreachable
        """
        event = self.decoder.decode(raw)

        if self.dedup and event.transfer_key is not None:
            result = await self.ledger.credit_transfer(event)
        else:
            result = await self.ledger.credit_by_address(event.from_address, event.amount)

        if result.status is CreditStatus.DUPLICATE:
            logger.info(
                f"[{source}] Transfer {mask_tx_hash(event.tx_hash)}#{event.log_index} "
                f"already credited, skipping"
            )
            return result

        if result.status is CreditStatus.NOT_FOUND:
            logger.warning(
                f"[{source}] No account for {mask_address(event.from_address)}, "
                f"deposit of {event.amount} in block {event.block_number} dropped"
            )
            return result

        logger.success(
            f"💰 [{source}] Credited {event.amount} to user {result.account_id} "
            f"(block {event.block_number}, new balance {result.new_balance})"
        )
        return result
