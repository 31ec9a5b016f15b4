"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from eth_account import Account
from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.constants import (
    DEFAULT_KEEPALIVE_INTERVAL_SECONDS,
    DEFAULT_SCAN_INTERVAL_SECONDS,
    DEFAULT_TOKEN_DECIMALS,
    RPC_CALL_TIMEOUT,
    SCAN_CHUNK_SIZE,
    STORE_CALL_TIMEOUT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Blockchain RPC
    rpc_url: str

    # Receiving wallet: either the address itself or the seed it derives from
    wallet_seed_phrase: str | None = None
    deposit_wallet_address: str | None = None

    # Token
    token_contract_address: str
    token_decimals: int = Field(
        default=DEFAULT_TOKEN_DECIMALS, ge=0, le=77,
        description="ERC-20 decimals used to scale raw transfer amounts"
    )

    # Database
    database_url: str
    database_echo: bool = False

    # Scheduling
    scan_interval_seconds: int = Field(
        default=DEFAULT_SCAN_INTERVAL_SECONDS, ge=1,
        description="Period of the backfill reconciliation scan"
    )
    keepalive_interval_seconds: int = Field(
        default=DEFAULT_KEEPALIVE_INTERVAL_SECONDS, ge=1,
        description="Period of the keep-alive self-ping"
    )
    self_ping_url: str | None = None

    # Live subscription polling
    blockchain_poll_interval: float = Field(
        default=3.0, gt=0, description="Live subscription polling interval in seconds"
    )
    subscription_max_failures: int = Field(
        default=10, ge=1,
        description="Consecutive poll failures before the live subscription gives up"
    )
    scan_chunk_size: int = Field(default=SCAN_CHUNK_SIZE, ge=1)

    # Hardening
    rpc_timeout_seconds: float = Field(default=RPC_CALL_TIMEOUT, gt=0)
    store_timeout_seconds: float = Field(default=STORE_CALL_TIMEOUT, gt=0)

    # Idempotency journal keyed by (tx_hash, log_index)
    deposit_dedup_enabled: bool = True

    # Keep-alive web server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    # Application
    log_level: str = "INFO"
    log_file: str = "logs/deposit_listener.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def resolve_receiving_address(self) -> 'Settings':
        """Derive the receiving address from the seed phrase if needed."""
        if self.deposit_wallet_address:
            if self.wallet_seed_phrase:
                logger.debug(
                    "Both DEPOSIT_WALLET_ADDRESS and WALLET_SEED_PHRASE set, "
                    "using DEPOSIT_WALLET_ADDRESS"
                )
            return self

        if not self.wallet_seed_phrase:
            raise ValueError(
                'Either DEPOSIT_WALLET_ADDRESS or WALLET_SEED_PHRASE is required. '
                'Set one of them in .env file.'
            )

        try:
            Account.enable_unaudited_hdwallet_features()
            account = Account.from_mnemonic(self.wallet_seed_phrase)
        except Exception as e:
            raise ValueError(f'WALLET_SEED_PHRASE is not a valid mnemonic: {e}') from e

        self.deposit_wallet_address = account.address.lower()
        return self

    @field_validator('deposit_wallet_address', 'token_contract_address')
    @classmethod
    def validate_eth_address(cls, v: str | None) -> str | None:
        """Validate Ethereum address format."""
        if v is None:
            return v
        if not v.startswith('0x') or len(v) != 42:
            raise ValueError(
                f'Invalid Ethereum address: {v}. '
                'Must start with 0x and be 42 characters long.'
            )
        try:
            int(v[2:], 16)
        except ValueError as exc:
            raise ValueError(f'Invalid Ethereum address format: {v}') from exc
        return v.lower()

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL and force the asyncpg driver."""
        if v.startswith('postgresql+asyncpg://'):
            return v
        if v.startswith('postgresql://'):
            return 'postgresql+asyncpg://' + v[len('postgresql://'):]
        raise ValueError(
            'DATABASE_URL must start with postgresql:// or postgresql+asyncpg://'
        )

    @property
    def receiving_address(self) -> str:
        """Lower-cased address that deposits are sent to."""
        return self.deposit_wallet_address or ""


# Global settings instance
settings = Settings()
