"""
Exceptions for contract calls and transaction pipelines.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ethcontract.errors.base import EthContractError


class CallRevertedError(EthContractError):
    """
    Raised when a read-only call reverts.

    This is an expected business outcome and is surfaced verbatim.

    Attributes:
        reason: Decoded revert message, or None when the revert carried no
            recognizable reason.
        data: Raw revert payload, if the node returned one.
    """

    default_code = "CALL_REVERTED"

    def __init__(
        self,
        reason: Optional[str],
        *,
        data: Optional[bytes] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if data is not None:
            details["data"] = "0x" + data.hex()
        message = f"Call reverted: {reason}" if reason is not None else "Call reverted (reason unavailable)"
        super().__init__(message, details=details)
        self.reason = reason
        self.data = data

    @property
    def reason_available(self) -> bool:
        return self.reason is not None


class PipelineError(EthContractError):
    """Base exception for the transaction pipeline."""

    default_code = "PIPELINE_ERROR"


class ConfirmationTimeoutError(PipelineError):
    """
    Raised when a confirmation wait exceeds its deadline.

    This is an observation failure only. The transaction was not cancelled
    and may still be mined later; re-poll with the same hash to find out.
    """

    default_code = "CONFIRMATION_TIMEOUT"

    def __init__(
        self,
        tx_hash: str,
        *,
        timeout: Optional[float] = None,
        blocks: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if timeout is not None:
            details["timeout"] = timeout
        if blocks is not None:
            details["blocks"] = blocks
        bound = f"{timeout}s" if timeout is not None else f"{blocks} blocks"
        super().__init__(
            f"Transaction not confirmed within {bound}",
            tx_hash=tx_hash,
            details=details,
        )
        self.timeout = timeout
        self.blocks = blocks


class TransactionRevertedError(PipelineError):
    """
    Raised when a transaction was mined but failed on-chain.

    Attributes:
        reason: Revert message recovered by replaying the call, or None when
            replay failed or the revert carried no reason.
        receipt: The node's receipt object.
    """

    default_code = "TRANSACTION_REVERTED"

    def __init__(
        self,
        tx_hash: str,
        *,
        reason: Optional[str] = None,
        receipt: Optional[Dict[str, Any]] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if receipt is not None:
            details["block_number"] = receipt.get("blockNumber")
            details["gas_used"] = receipt.get("gasUsed")
        message = f"Transaction reverted: {reason}" if reason else "Transaction reverted (reason unavailable)"
        super().__init__(message, tx_hash=tx_hash, details=details)
        self.reason = reason
        self.receipt = receipt
