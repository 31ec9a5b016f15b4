"""
Tests for log masking helpers.
"""

from app.utils.security import mask_address, mask_tx_hash, mask_url


def test_mask_address():
    assert mask_address("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"
    assert mask_address(None) == "***"
    assert mask_address("short") == "***"


def test_mask_tx_hash(sample_transaction_hash):
    assert mask_tx_hash(sample_transaction_hash) == "0x12345678...abcdef"
    assert mask_tx_hash(None) == "***"


def test_mask_url_hides_api_key():
    assert mask_url("https://arb-mainnet.g.alchemy.com/v2/secret") == "https://arb-mainnet.g.alchemy.com/***"
    assert mask_url("https://rpc.example.org/?key=secret") == "https://rpc.example.org/***"
    assert mask_url("not a url") == "***"
    assert mask_url(None) == "***"
