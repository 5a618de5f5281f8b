"""
Amount codec.

The ledger moves amounts as unsigned 256-bit words. Internally every amount
is a plain Python ``int``. Conversions are exact in both directions and never
pass through ``float``.
"""

from decimal import Decimal
from typing import Union

from eth_abi import decode, encode
from hexbytes import HexBytes

UINT256_MAX = 2**256 - 1
WORD_SIZE = 32

WireValue = Union[bytes, bytearray, HexBytes, str, int]


class AmountError(ValueError):
    """Raised when a value cannot be represented as a uint256 amount."""
    pass


def validate_amount(value: int) -> int:
    """
    Check that ``value`` is an integer in the uint256 range.

    Args:
        value: Candidate amount

    Returns:
        The same value

    Raises:
        AmountError: Not an int, or out of range
    """
    # bool is an int subclass; a flag is never an amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise AmountError(f"Amount must be an integer, got {type(value).__name__}: {value!r}")
    if value < 0:
        raise AmountError(f"Amount must not be negative, got: {value}")
    if value > UINT256_MAX:
        raise AmountError(f"Amount exceeds uint256 range: {value}")
    return value


def _word_to_int(word: bytes) -> int:
    if len(word) != WORD_SIZE:
        raise AmountError(f"Expected a {WORD_SIZE}-byte word, got {len(word)} bytes")
    return decode(["uint256"], bytes(word))[0]


def to_internal(wire: WireValue) -> int:
    """
    Convert a wire-format amount into an arbitrary-precision integer.

    Accepts a 32-byte big-endian word (bytes, HexBytes or 0x-prefixed hex
    string), a decimal string, an int, or an integral Decimal.

    Raises:
        AmountError: The value is not an exact uint256
    """
    if isinstance(wire, float):
        raise AmountError(f"Refusing float amount {wire!r}; floats lose precision")

    if isinstance(wire, (bytes, bytearray)):
        return _word_to_int(bytes(wire))

    if isinstance(wire, str):
        text = wire.strip()
        if text.lower().startswith("0x"):
            try:
                word = HexBytes(text)
            except ValueError as e:
                raise AmountError(f"Invalid hex amount {wire!r}: {e}") from e
            return _word_to_int(word)
        if not (text.isascii() and text.isdigit()):
            raise AmountError(f"Invalid decimal amount: {wire!r}")
        return validate_amount(int(text))

    if isinstance(wire, Decimal):
        if not wire.is_finite() or wire != wire.to_integral_value():
            raise AmountError(f"Amount is not a whole number: {wire}")
        return validate_amount(int(wire))

    return validate_amount(wire)


def to_wire(value: int) -> HexBytes:
    """
    Convert an internal amount into its 32-byte wire word.

    Raises:
        AmountError: The value is not an exact uint256
    """
    return HexBytes(encode(["uint256"], [validate_amount(value)]))
