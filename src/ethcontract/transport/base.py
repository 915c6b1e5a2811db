"""
JSON-RPC transport interface.

The runtime talks to a node only through this interface: one request at a
time with ``send``, or several in a single round trip with ``send_batch``.
Concrete transports live in sibling modules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ethcontract.errors import RpcError

JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class RpcRequest:
    """One JSON-RPC call."""

    id: int
    method: str
    params: Sequence[Any]

    def to_json(self) -> Dict[str, Any]:
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
            "params": list(self.params),
        }


@dataclass(frozen=True)
class RpcResponse:
    """
    One JSON-RPC reply.

    Exactly one of ``result`` / ``error`` is meaningful; ``error`` is the raw
    JSON-RPC error object when the node reported a failure.
    """

    id: Any
    result: Any = None
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "RpcResponse":
        return cls(id=payload.get("id"), result=payload.get("result"), error=payload.get("error"))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def unwrap(self, method: Optional[str] = None, params: Any = None) -> Any:
        """Return the result or raise the node's error as RpcError."""
        if self.error is not None:
            raise RpcError.from_response(self.error, method=method, params=params)
        return self.result


class Transport(ABC):
    """
    Abstract JSON-RPC transport.

    Implementations raise RpcError when the node answers with an error and
    RpcTransportError when no answer was obtained at all.
    """

    @abstractmethod
    async def send(self, method: str, params: Sequence[Any]) -> Any:
        """Issue one request and return its ``result``."""
        raise NotImplementedError

    @abstractmethod
    async def send_batch(self, requests: Sequence[RpcRequest]) -> List[RpcResponse]:
        """
        Issue several requests in one round trip.

        Returns the replies in the order the node sent them. Correlating them
        with the requests is the caller's job.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources."""
        return None

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
