"""
ABI-related exceptions.

DecodeError and EncodeError are integrity faults (a programming error or a
misbehaving node) and are never retried. AbiParseError is raised while
loading a schema and is fatal for that schema.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ethcontract.errors.base import EthContractError


class AbiError(EthContractError):
    """Base exception for ABI schema and codec failures."""

    default_code = "ABI_ERROR"


class AbiParseError(AbiError):
    """
    Raised when an ABI type string or ABI document is malformed.

    Example:
        >>> raise AbiParseError("uint257", reason="bit width must be a multiple of 8")
    """

    default_code = "ABI_PARSE_ERROR"

    def __init__(
        self,
        source: str,
        *,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["source"] = source
        if reason:
            details["reason"] = reason

        message = f"Invalid ABI definition: {source!r}"
        if reason:
            message += f" ({reason})"

        super().__init__(message, details=details)
        self.source = source
        self.reason = reason


class EncodeError(AbiError):
    """Raised when a value cannot be represented by its declared ABI type."""

    default_code = "ENCODE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        abi_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if abi_type:
            details["abi_type"] = abi_type
        super().__init__(message, details=details)
        self.abi_type = abi_type


class DecodeError(AbiError):
    """
    Raised when an ABI payload is malformed.

    The ``code`` distinguishes the failure:

    - ``OUT_OF_BOUNDS``: an offset or length points past the end of the buffer
    - ``INVALID_PADDING``: non-zero bytes where the ABI requires zero padding
    - ``INVALID_VALUE``: a word that cannot represent the declared type
    """

    default_code = "DECODE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        abi_type: Optional[str] = None,
        offset: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if abi_type:
            details["abi_type"] = abi_type
        if offset is not None:
            details["offset"] = offset
        super().__init__(message, code=code, details=details)
        self.abi_type = abi_type
        self.offset = offset

    @classmethod
    def out_of_bounds(
        cls, abi_type: str, offset: int, needed: int, available: int
    ) -> "DecodeError":
        return cls(
            f"Reading {needed} bytes at offset {offset} for {abi_type} "
            f"exceeds buffer of {available} bytes",
            code="OUT_OF_BOUNDS",
            abi_type=abi_type,
            offset=offset,
            details={"needed": needed, "available": available},
        )
