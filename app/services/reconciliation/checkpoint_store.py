"""
Checkpoint store.

Durable watermark: all transfers up to and including ``read()`` have been
applied. ``write`` never lowers the value, only ``reset`` does.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import CHECKPOINT_NAME, STORE_CALL_TIMEOUT
from app.repositories.sync_state_repository import SyncStateRepository
from app.utils.db_decorators import store_operation


class SqlCheckpointStore:
    """Checkpoint persisted in the blockchain_sync_state table."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        name: str = CHECKPOINT_NAME,
        timeout: float = STORE_CALL_TIMEOUT,
    ) -> None:
        self.session_maker = session_maker
        self.name = name
        self.timeout = timeout

    @store_operation("read checkpoint")
    async def read(self, session: AsyncSession) -> int | None:
        return await SyncStateRepository(session).get_last_scanned_block(self.name)

    @store_operation("write checkpoint")
    async def write(self, session: AsyncSession, block_number: int) -> None:
        await SyncStateRepository(session).advance(self.name, block_number)
        logger.debug(f"Checkpoint {self.name} advanced to >= {block_number}")

    @store_operation("reset checkpoint")
    async def reset(self, session: AsyncSession, block_number: int) -> None:
        await SyncStateRepository(session).reset(self.name, block_number)
        logger.warning(f"Checkpoint {self.name} reset to {block_number}")

    @store_operation("record scan error")
    async def record_error(self, session: AsyncSession, error: str) -> None:
        await SyncStateRepository(session).record_error(self.name, error)


class MemoryCheckpointStore:
    """In-process checkpoint for tests and dry runs."""

    def __init__(self, value: int | None = None) -> None:
        self.value = value
        self.last_error: str | None = None
        self.writes: list[int] = []

    async def read(self) -> int | None:
        return self.value

    async def write(self, block_number: int) -> None:
        self.writes.append(block_number)
        if self.value is None or block_number > self.value:
            self.value = block_number

    async def reset(self, block_number: int) -> None:
        self.value = block_number

    async def record_error(self, error: str) -> None:
        self.last_error = error
