#!/usr/bin/env python3
"""
Reset the deposit scan checkpoint.

This is the only way to move lastScannedBlock backwards. The next scan
re-applies every deposit after the new value, so with the transfer
journal disabled any deposit in the replayed range is credited again.

Usage:
    python scripts/reset_checkpoint.py 12345678
    python scripts/reset_checkpoint.py --head
"""

import argparse
import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loguru import logger  # noqa: E402

from app.config.database import async_session_maker, engine  # noqa: E402
from app.config.settings import settings  # noqa: E402
from app.services.blockchain.transfer_provider import Web3TransferProvider  # noqa: E402
from app.services.reconciliation.checkpoint_store import SqlCheckpointStore  # noqa: E402


async def reset_checkpoint(block: int | None, to_head: bool) -> int:
    """
    Set the checkpoint to block, or to the current chain head.

    Returns:
        The new checkpoint value
    """
    checkpoint = SqlCheckpointStore(
        async_session_maker, timeout=settings.store_timeout_seconds
    )
    provider = None
    try:
        if to_head:
            provider = Web3TransferProvider.from_settings(settings)
            block = await provider.get_block_number()

        previous = await checkpoint.read()
        await checkpoint.reset(block)
        logger.success(f"Checkpoint moved from {previous} to {block}")
        return block
    finally:
        if provider is not None:
            await provider.close()
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Reset the deposit scan checkpoint (lastScannedBlock)"
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("block", nargs="?", type=int, help="New checkpoint block")
    target.add_argument(
        "--head", action="store_true", help="Use the current chain head"
    )
    args = parser.parse_args()

    if args.block is not None and args.block < 0:
        parser.error("block must be non-negative")

    asyncio.run(reset_checkpoint(args.block, args.head))


if __name__ == "__main__":
    main()
