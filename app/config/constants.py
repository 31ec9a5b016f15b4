"""
Application constants.

Centralized constants for the deposit listener.
"""

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# keccak256("Transfer(address,address,uint256)")
ERC20_TRANSFER_TOPIC = (
    "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
)

DEFAULT_TOKEN_DECIMALS = 18

# Timeouts for external calls (in seconds)
RPC_CALL_TIMEOUT = 30.0  # Single RPC request (block number, one getLogs chunk)
STORE_CALL_TIMEOUT = 15.0  # Single database round trip

# Blockchain scanning limits
SCAN_CHUNK_SIZE = 2000  # Blocks per eth_getLogs request to stay under RPC limits

# ========================================================================
# SCHEDULER CONSTANTS
# ========================================================================

DEFAULT_SCAN_INTERVAL_SECONDS = 4 * 60 * 60  # 4 hours
DEFAULT_KEEPALIVE_INTERVAL_SECONDS = 5 * 60  # 5 minutes

SCAN_JOB_ID = "deposit_reconciliation"
KEEPALIVE_JOB_ID = "keepalive_self_ping"
WATCHDOG_JOB_ID = "live_watcher_watchdog"

# ========================================================================
# PERSISTENCE CONSTANTS
# ========================================================================

CHECKPOINT_NAME = "lastScannedBlock"

# ========================================================================
# HTTP CONSTANTS
# ========================================================================

LIVENESS_MESSAGE = "Deposit listener running!"
SELF_PING_TIMEOUT = 10.0
