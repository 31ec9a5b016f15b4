"""
Web3 transfer provider.

Reads ERC-20 Transfer logs addressed to the receiving wallet through an
AsyncWeb3 client. Logs are filtered by the Transfer topic and the
recipient in topics[2], so no contract ABI is needed.
"""

from typing import Any

from aiohttp import ClientTimeout
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from app.config.constants import (
    ERC20_TRANSFER_TOPIC,
    RPC_CALL_TIMEOUT,
    SCAN_CHUNK_SIZE,
)
from app.config.settings import Settings
from app.services.blockchain.rpc_wrapper import with_timeout
from app.services.blockchain.transfer_subscription import PollingTransferSubscription
from app.services.reconciliation.types import RawTransfer
from app.utils.exceptions import ProviderError, is_provider_failure
from app.utils.security import mask_address, mask_url


def address_to_topic(address: str) -> str:
    """Left-pad an address to a 32-byte indexed topic."""
    return "0x" + address.lower().removeprefix("0x").rjust(64, "0")


def topic_to_address(topic: Any) -> str:
    """Extract the lower-cased address from a 32-byte indexed topic."""
    raw = bytes(HexBytes(topic))
    if len(raw) != 32:
        raise ValueError(f"Topic must be 32 bytes, got {len(raw)}")
    return "0x" + raw[-20:].hex()


def parse_transfer_log(log: Any) -> RawTransfer:
    """
    Convert an eth_getLogs entry into a RawTransfer.

    The amount is passed on undecoded as a 0x hex string.

    Raises:
        ValueError: If the log is not a well-formed ERC-20 Transfer
    """
    topics = log["topics"]
    if len(topics) < 3:
        raise ValueError(f"Transfer log has {len(topics)} topics, expected 3")

    tx_hash = log.get("transactionHash")
    return RawTransfer(
        from_address=topic_to_address(topics[1]),
        to_address=topic_to_address(topics[2]),
        raw_value=AsyncWeb3.to_hex(HexBytes(log["data"])),
        block_number=int(log["blockNumber"]),
        tx_hash=AsyncWeb3.to_hex(HexBytes(tx_hash)).lower() if tx_hash is not None else None,
        log_index=log.get("logIndex"),
    )


class Web3TransferProvider:
    """
    Chain access for the reconciler and the live watcher.

    Every RPC call is bounded by ``timeout``. Connectivity failures are
    raised as ProviderError.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        token_address: str,
        timeout: float = RPC_CALL_TIMEOUT,
        chunk_size: int = SCAN_CHUNK_SIZE,
        poll_interval: float = 3.0,
        max_failures: int = 10,
        queue_size: int = 1000,
    ) -> None:
        """
        Initialize provider.

        Args:
            w3: AsyncWeb3 client
            token_address: ERC-20 contract address
            timeout: Per-call timeout in seconds
            chunk_size: Maximum block span of one eth_getLogs call
            poll_interval: Live subscription polling interval in seconds
            max_failures: Consecutive poll failures before the live
                subscription gives up
            queue_size: Live subscription queue bound
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.w3 = w3
        self.token_address = to_checksum_address(token_address)
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self.max_failures = max_failures
        self.queue_size = queue_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "Web3TransferProvider":
        """Build a provider over HTTP JSON-RPC from application settings."""
        w3 = AsyncWeb3(
            AsyncHTTPProvider(
                settings.rpc_url,
                request_kwargs={
                    "timeout": ClientTimeout(total=settings.rpc_timeout_seconds)
                },
            )
        )
        logger.info(
            f"Chain provider: {mask_url(settings.rpc_url)}, "
            f"token {mask_address(settings.token_contract_address)}"
        )
        return cls(
            w3,
            settings.token_contract_address,
            timeout=settings.rpc_timeout_seconds,
            chunk_size=settings.scan_chunk_size,
            poll_interval=settings.blockchain_poll_interval,
            max_failures=settings.subscription_max_failures,
        )

    async def _call(self, coro: Any, operation_name: str) -> Any:
        try:
            return await with_timeout(
                coro, timeout=self.timeout, operation_name=operation_name
            )
        except Exception as e:
            if is_provider_failure(e):
                raise ProviderError(f"{operation_name} failed: {e}") from e
            raise

    async def get_block_number(self) -> int:
        """
        Get current chain head.

        Raises:
            ProviderError: If the node is unreachable
        """
        return int(await self._call(self.w3.eth.get_block_number(), "eth_blockNumber"))

    async def query_transfer_events(
        self, to_address: str, from_block: int, to_block: int
    ) -> list[RawTransfer]:
        """
        Get Transfer events addressed to to_address in [from_block, to_block].

        The range is fetched in chunks of at most ``chunk_size`` blocks. A
        failed chunk fails the whole query so that the caller never skips
        part of the range.

        Args:
            to_address: Receiving wallet address
            from_block: First block (inclusive)
            to_block: Last block (inclusive)

        Returns:
            Transfers ordered by (block_number, log_index)

        Raises:
            ProviderError: If any chunk cannot be fetched
        """
        if from_block > to_block:
            return []

        recipient_topic = address_to_topic(to_address)
        transfers: list[RawTransfer] = []

        current_start = from_block
        while current_start <= to_block:
            current_end = min(current_start + self.chunk_size - 1, to_block)

            logs = await self._call(
                self.w3.eth.get_logs(
                    {
                        "fromBlock": current_start,
                        "toBlock": current_end,
                        "address": self.token_address,
                        "topics": [ERC20_TRANSFER_TOPIC, None, recipient_topic],
                    }
                ),
                f"eth_getLogs {current_start}-{current_end}",
            )
            logger.debug(f"Chunk {current_start}-{current_end}: {len(logs)} logs")

            for log in logs:
                if log.get("removed"):
                    continue
                try:
                    transfers.append(parse_transfer_log(log))
                except (KeyError, TypeError, ValueError) as e:
                    logger.error(
                        f"Skipping malformed Transfer log in block "
                        f"{log.get('blockNumber')}: {e}"
                    )

            current_start = current_end + 1

        transfers.sort(
            key=lambda t: (t.block_number, t.log_index if t.log_index is not None else -1)
        )
        return transfers

    def subscribe_transfers(
        self, to_address: str, start_block: int
    ) -> PollingTransferSubscription:
        """
        Create a live subscription starting at start_block.

        The subscription is not running until ``start()`` is awaited.
        """
        return PollingTransferSubscription(
            self,
            to_address,
            start_block,
            poll_interval=self.poll_interval,
            max_failures=self.max_failures,
            queue_size=self.queue_size,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
