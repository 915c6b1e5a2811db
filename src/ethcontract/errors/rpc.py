"""
Transport and batching exceptions.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ethcontract.errors.base import EthContractError


class RpcError(EthContractError):
    """
    Raised when the node (or the transport in front of it) reports a fault.

    Carries the JSON-RPC method and params so failures can be diagnosed
    without re-running the request.

    Attributes:
        method: JSON-RPC method name.
        params: JSON-RPC params as sent.
        rpc_code: JSON-RPC error code, if the node returned one.
        data: JSON-RPC error ``data`` member, if any (often revert data).

    Example:
        >>> raise RpcError("execution reverted", method="eth_call", params=[...], rpc_code=3)
    """

    default_code = "RPC_ERROR"

    def __init__(
        self,
        message: str,
        *,
        method: Optional[str] = None,
        params: Optional[Any] = None,
        rpc_code: Optional[int] = None,
        data: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if method:
            details["method"] = method
        if params is not None:
            details["params"] = params
        if rpc_code is not None:
            details["rpc_code"] = rpc_code
        if data is not None:
            details["data"] = data
        super().__init__(message, details=details)
        self.method = method
        self.params = params
        self.rpc_code = rpc_code
        self.data = data

    @classmethod
    def from_response(
        cls, error: Dict[str, Any], *, method: Optional[str] = None, params: Any = None
    ) -> "RpcError":
        """Build an RpcError from a JSON-RPC ``error`` object."""
        return cls(
            str(error.get("message", "unknown RPC error")),
            method=method,
            params=params,
            rpc_code=error.get("code"),
            data=error.get("data"),
        )


class RpcTransportError(RpcError):
    """Raised when the request never produced a JSON-RPC response (network, HTTP status)."""

    default_code = "RPC_TRANSPORT_ERROR"


class BatchError(EthContractError):
    """Base exception for batch round trips."""

    default_code = "BATCH_ERROR"


class BatchDesyncError(BatchError):
    """
    Raised when positional and id-based correlation of a batch disagree.

    Fatal to the batch: every handle in it fails with this error.
    """

    default_code = "BATCH_DESYNC"

    def __init__(
        self,
        message: str,
        *,
        expected_ids: Optional[List[Any]] = None,
        received_ids: Optional[List[Any]] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if expected_ids is not None:
            details["expected_ids"] = expected_ids
        if received_ids is not None:
            details["received_ids"] = received_ids
        super().__init__(message, details=details)
        self.expected_ids = expected_ids
        self.received_ids = received_ids
