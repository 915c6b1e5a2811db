"""
Base exception class for the ethcontract runtime.

All ethcontract exceptions inherit from EthContractError, which provides
structured error information including error codes, transaction hashes,
and additional context details.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class EthContractError(Exception):
    """
    Base exception for all ethcontract errors.

    Provides structured error information that can be serialized and logged.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code (e.g., "OUT_OF_BOUNDS").
        tx_hash: Optional transaction hash related to the error.
        details: Optional dictionary with additional error context.

    Example:
        >>> raise EthContractError(
        ...     "Transaction failed",
        ...     code="TX_FAILED",
        ...     tx_hash="0x123...",
        ...     details={"gas_used": 21000}
        ... )
    """

    default_code = "ETHCONTRACT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.tx_hash = tx_hash
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error message."""
        parts = [f"[{self.code}] {self.message}"]
        if self.tx_hash:
            parts.append(f"(tx: {self.tx_hash[:10]}...)")
        return " ".join(parts)

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "details": self.details,
        }


class ValidationError(EthContractError):
    """Raised when caller-supplied input is rejected before any I/O."""

    default_code = "VALIDATION_ERROR"
