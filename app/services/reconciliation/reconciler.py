"""
Reconciler - backfill scan.

Re-queries the block range between the checkpoint and the chain head so
that deposits missed by the live watcher are still credited.
"""

from loguru import logger

from app.services.reconciliation.ports import CheckpointStore, TransferEventProvider
from app.services.reconciliation.processor import DepositProcessor
from app.services.reconciliation.types import RawTransfer, ScanReport
from app.utils.exceptions import (
    DecodeError,
    ProviderError,
    ScanError,
    StoreError,
)


def _event_order(raw: RawTransfer) -> tuple[int, int]:
    return raw.block_number, raw.log_index if raw.log_index is not None else -1


class Reconciler:
    """Checkpointed backfill scan over the receiving address."""

    def __init__(
        self,
        provider: TransferEventProvider,
        checkpoint: CheckpointStore,
        processor: DepositProcessor,
        receiving_address: str,
    ) -> None:
        self.provider = provider
        self.checkpoint = checkpoint
        self.processor = processor
        self.receiving_address = receiving_address

    async def run(self) -> ScanReport:
        """
        Run one backfill pass.

        On first run (no checkpoint) the checkpoint is set to the chain head
        and nothing is applied. Otherwise every transfer in
        [checkpoint + 1, head] is applied in ascending order and the
        checkpoint is advanced to head, also when some transfers were
        malformed or matched no account.

        Returns:
            Scan report

        Raises:
            ScanError: If the provider or the store is unreachable. The
                checkpoint is left untouched in that case.
        """
        report = ScanReport()

        try:
            last = await self.checkpoint.read()
            head = await self.provider.get_block_number()

            if last is None:
                await self.checkpoint.write(head)
                report.to_block = head
                report.bootstrapped = True
                logger.info(f"🏁 No checkpoint found, starting from chain head {head}")
                return report

            if head <= last:
                logger.debug(f"Nothing to scan: head {head} <= checkpoint {last}")
                return report

            report.from_block = last + 1
            report.to_block = head
            logger.info(f"🔍 Scanning blocks {last + 1}-{head} for deposits")

            transfers = await self.provider.query_transfer_events(
                self.receiving_address, last + 1, head
            )
            transfers = sorted(transfers, key=_event_order)
            report.events = len(transfers)

            for raw in transfers:
                try:
                    result = await self.processor.apply(raw, source="scan")
                except DecodeError as e:
                    report.failed += 1
                    logger.error(f"Skipping malformed transfer in block {raw.block_number}: {e}")
                    continue
                except StoreError:
                    raise
                except Exception as e:
                    report.failed += 1
                    logger.exception(
                        f"Unexpected error applying transfer in block {raw.block_number}: {e}"
                    )
                    continue
                report.count(result)

            await self.checkpoint.write(head)

        except (ProviderError, StoreError) as e:
            logger.error(f"❌ Scan aborted, checkpoint not advanced: {e}")
            raise ScanError(str(e)) from e

        logger.info(
            f"✅ Scan {report.from_block}-{report.to_block} complete: "
            f"{report.events} events, {report.applied} applied, "
            f"{report.unmatched} unmatched, {report.duplicates} duplicates, "
            f"{report.failed} failed"
        )
        return report
