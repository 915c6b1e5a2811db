"""
Wire encoding helpers for JSON-RPC values.

- Quantities: ``0x``-prefixed big-endian hex, no leading zeros, ``0x0`` for zero
- Data: ``0x``-prefixed hex with an even number of digits
- Addresses: 20-byte data, rendered EIP-55 checksummed
"""

from __future__ import annotations

import re
from typing import Union

from eth_utils import is_hex_address, to_checksum_address

from ethcontract.errors import ValidationError

_QUANTITY_RE = re.compile(r"^0x(0|[1-9a-fA-F][0-9a-fA-F]*)$")
_DATA_RE = re.compile(r"^0x([0-9a-fA-F]{2})*$")


def to_quantity(value: int) -> str:
    """Encode a non-negative integer as a JSON-RPC quantity."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Quantity must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValidationError("Quantity must be non-negative")
    return hex(value)


def from_quantity(value: Union[str, int]) -> int:
    """
    Decode a JSON-RPC quantity.

    Ints are passed through so callers can feed already-decoded values.
    Leading zeros are tolerated on input since several nodes emit them.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str) or not value.startswith(("0x", "0X")) or len(value) < 3:
        raise ValidationError(f"Invalid quantity: {value!r}")
    try:
        return int(value, 16)
    except ValueError:
        raise ValidationError(f"Invalid quantity: {value!r}") from None


def is_quantity(value: str) -> bool:
    """Return True if ``value`` is a canonical quantity string."""
    return bool(_QUANTITY_RE.match(value))


def to_data(value: Union[bytes, bytearray]) -> str:
    """Encode bytes as JSON-RPC data."""
    return "0x" + bytes(value).hex()


def from_data(value: Union[str, bytes, bytearray]) -> bytes:
    """Decode JSON-RPC data; rejects odd digit counts and missing prefixes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str) or not _DATA_RE.match(value):
        raise ValidationError(f"Invalid hex data: {value!r}")
    return bytes.fromhex(value[2:])


def normalize_address(value: Union[str, bytes, bytearray], field: str = "address") -> str:
    """
    Validate an address and return it EIP-55 checksummed.

    Accepts 0x-prefixed hex strings (any case) or 20 raw bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValidationError(f"{field} must be 20 bytes, got {len(value)}")
        return to_checksum_address(bytes(value))
    if not isinstance(value, str) or not is_hex_address(value):
        raise ValidationError(f"{field} must be a 0x-prefixed 20-byte hex address")
    return to_checksum_address(value)


def address_to_bytes(value: Union[str, bytes, bytearray], field: str = "address") -> bytes:
    """Return the 20 raw bytes of an address."""
    return bytes.fromhex(normalize_address(value, field)[2:])
