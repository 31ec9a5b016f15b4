"""
Event decoder.

Turns raw ERC-20 transfer notifications into DepositEvent values,
applying fixed-point decimal scaling.
"""

from decimal import Decimal, localcontext

from app.services.reconciliation.types import DepositEvent, RawTransfer
from app.utils.exceptions import DecodeError

# Enough digits for a full uint256 (78 digits) plus the fractional part
_DECIMAL_PRECISION = 160


def parse_raw_amount(raw_value: int | str | bytes | None) -> int:
    """
    Parse fixed-point integer amount.

    Accepts an int, a decimal digit string or a 0x-prefixed hex string
    (the ABI encoding of uint256 as returned in log data).

    Raises:
        DecodeError: If the value is not a valid non-negative integer
    """
    if isinstance(raw_value, bool):
        raise DecodeError(f"Invalid raw amount: {raw_value!r}")

    if isinstance(raw_value, int):
        value = raw_value
    elif isinstance(raw_value, (bytes, bytearray)):
        if not raw_value:
            raise DecodeError("Empty raw amount")
        value = int.from_bytes(raw_value, "big")
    elif isinstance(raw_value, str):
        text = raw_value.strip()
        try:
            if text[:2].lower() == "0x":
                value = int(text[2:], 16)
            elif text.isascii() and text.isdigit():
                value = int(text)
            else:
                raise ValueError(text)
        except ValueError as e:
            raise DecodeError(f"Invalid raw amount: {raw_value!r}") from e
    else:
        raise DecodeError(f"Invalid raw amount type: {type(raw_value).__name__}")

    if value < 0:
        raise DecodeError(f"Negative raw amount: {value}")
    return value


def scale_amount(raw_amount: int, decimals: int) -> Decimal:
    """Convert fixed-point integer to token units: raw / 10**decimals."""
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return Decimal(raw_amount) / (Decimal(10) ** decimals)


class EventDecoder:
    """Stateless decoder bound to the token's decimal count."""

    def __init__(self, decimals: int) -> None:
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {decimals}")
        self.decimals = decimals

    def decode(self, raw: RawTransfer) -> DepositEvent:
        """
        Decode a raw transfer notification.

        Args:
            raw: Transfer as delivered by the provider

        Returns:
            Normalized deposit event

        Raises:
            DecodeError: If the amount or the sender is malformed
        """
        if not raw.from_address:
            raise DecodeError(f"Transfer in block {raw.block_number} has no sender")

        amount = scale_amount(parse_raw_amount(raw.raw_value), self.decimals)

        return DepositEvent(
            from_address=raw.from_address,
            amount=amount,
            block_number=raw.block_number,
            tx_hash=raw.tx_hash,
            log_index=raw.log_index,
        )
