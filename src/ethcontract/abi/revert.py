"""Revert payload decoding.

Solidity reverts carry one of:

- ``Error(string)``: ``0x08c379a0`` + ABI-encoded message
- ``Panic(uint256)``: ``0x4e487b71`` + ABI-encoded panic code
- a custom error selector (decoded through a ContractAbi)
- nothing at all
"""

from __future__ import annotations

from typing import Any, Optional

from ethcontract.abi import codec
from ethcontract.abi.types import String, UInt
from ethcontract.constants import ABI_SELECTOR_LENGTH, PANIC_REASONS, PANIC_SELECTOR, REVERT_SELECTOR
from ethcontract.errors import DecodeError, RpcError, ValidationError
from ethcontract.utils.hexutil import from_data

_ERROR_SELECTOR = bytes.fromhex(REVERT_SELECTOR[2:])
_PANIC_SELECTOR = bytes.fromhex(PANIC_SELECTOR[2:])


def decode_revert_reason(data: Optional[bytes]) -> Optional[str]:
    """Decode Solidity revert reason from revert data.

    Args:
        data: Raw revert payload (selector included).

    Returns:
        The ``Error(string)`` message, a ``panic: 0x..`` description for
        ``Panic(uint256)``, or None if the payload is empty or unrecognized.
    """
    if not data or len(data) < ABI_SELECTOR_LENGTH:
        return None

    selector, body = data[:ABI_SELECTOR_LENGTH], data[ABI_SELECTOR_LENGTH:]
    try:
        if selector == _ERROR_SELECTOR:
            return codec.decode_single(String(), body)
        if selector == _PANIC_SELECTOR:
            panic_code = codec.decode_single(UInt(256), body)
            description = PANIC_REASONS.get(panic_code, "unknown panic code")
            return f"panic: {hex(panic_code)} ({description})"
    except DecodeError:
        # Malformed reason payload; treat as a revert without reason
        return None
    return None


def encode_revert_reason(message: str) -> bytes:
    """Build an ``Error(string)`` payload. Mostly useful for fakes in tests."""
    return _ERROR_SELECTOR + codec.encode_single(String(), message)


def revert_data_from_error(error: RpcError) -> Optional[bytes]:
    """
    Pull the revert payload out of a node error.

    Nodes disagree on where it goes: geth puts a hex string in ``error.data``,
    others nest it as ``error.data.data`` or ``error.data.result``.
    """
    data: Any = error.data
    if isinstance(data, dict):
        data = data.get("data", data.get("result"))
    if not isinstance(data, str):
        return None
    try:
        return from_data(data)
    except ValidationError:
        return None
