"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.blockchain_sync_state import BlockchainSyncState
from app.models.credited_transfer import CreditedTransfer
from app.models.user import User

__all__ = [
    "Base",
    "BlockchainSyncState",
    "CreditedTransfer",
    "User",
]
