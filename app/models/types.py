"""
Standard type definitions for database models.

Provides consistent types for token amount fields across all models.
"""

from sqlalchemy import DECIMAL

# Token amount type for balances and credited transfers
# Precision: 38 digits total, 18 after decimal point
# Suitable for: ERC-20 amounts scaled by up to 18 decimals
# Range: up to 99,999,999,999,999,999,999.999999999999999999
TokenAmountType = DECIMAL(38, 18)
