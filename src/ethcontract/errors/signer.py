"""
Signing exceptions.

Messages never include key material.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ethcontract.errors.base import EthContractError


class SignerError(EthContractError):
    """
    Raised when a signer cannot produce a signature.

    Codes:
        - ``MISSING_FIELD``: the request lacks nonce, chain id, gas or fees
        - ``UNSUPPORTED``: the signer variant cannot perform the operation
        - ``SIGNER_ERROR``: any other signing failure
    """

    default_code = "SIGNER_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if address:
            details["address"] = address
        super().__init__(message, code=code, details=details)
        self.address = address

    @classmethod
    def missing_field(cls, field: str, address: Optional[str] = None) -> "SignerError":
        return cls(
            f"Transaction field '{field}' must be set before signing",
            code="MISSING_FIELD",
            address=address,
            details={"field": field},
        )


class SignerUnavailableError(SignerError):
    """
    Raised when an external signing agent could not be reached.

    Transient: the caller decides whether to retry. Signers never retry
    internally, since remote signing may have side effects.
    """

    default_code = "SIGNER_UNAVAILABLE"
