"""
Tests for model-level invariants.
"""

from decimal import Decimal

from app.models.user import User, normalize_address


def test_wallet_index_follows_wallet_address():
    user = User(wallet_address="0xABCdef0000000000000000000000000000000001", balance=Decimal("0"))

    assert user.wallet_address_lower == "0xabcdef0000000000000000000000000000000001"

    user.wallet_address = None
    assert user.wallet_address_lower is None


def test_normalize_address():
    assert normalize_address("  0xAbC ") == "0xabc"
    assert normalize_address("   ") is None
    assert normalize_address(None) is None
