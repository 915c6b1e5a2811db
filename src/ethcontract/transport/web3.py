"""
Adapter that runs the runtime on top of a web3.py async provider.

Useful when an application already configured an ``AsyncWeb3`` instance
(custom middleware, IPC or WebSocket connections) and wants to reuse it.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Union

from web3 import AsyncWeb3
from web3.providers.async_base import AsyncBaseProvider

from ethcontract.errors import RpcTransportError
from ethcontract.transport.base import RpcRequest, RpcResponse, Transport
from ethcontract.utils.logging import get_logger

_logger = get_logger(__name__)


class Web3Transport(Transport):
    """
    Transport backed by a web3.py async provider.

    Providers without batch support get their batch requests issued one by
    one; the replies are still returned positionally.
    """

    def __init__(self, provider: Union[AsyncWeb3, AsyncBaseProvider]) -> None:
        if isinstance(provider, AsyncWeb3):
            provider = provider.provider
        self._provider = provider

    @property
    def provider(self) -> AsyncBaseProvider:
        return self._provider

    async def send(self, method: str, params: Sequence[Any]) -> Any:
        raw = await self._request(method, params)
        return _to_response(raw, method).unwrap(method, list(params))

    async def send_batch(self, requests: Sequence[RpcRequest]) -> List[RpcResponse]:
        if not requests:
            return []
        make_batch = getattr(self._provider, "make_batch_request", None)
        if make_batch is None:
            _logger.debug(
                "Provider has no batch support, sending sequentially",
                extra={"size": len(requests)},
            )
            responses = []
            for request in requests:
                raw = await self._request(request.method, request.params)
                responses.append(_to_response(raw, request.method, request.id))
            return responses

        try:
            raw_batch = await make_batch([(r.method, list(r.params)) for r in requests])
        except (OSError, ConnectionError) as e:
            raise RpcTransportError(f"Provider failure: {e}", method="batch") from e
        if isinstance(raw_batch, Mapping):
            # A single error object for the whole batch
            return [_to_response(raw_batch, "batch")]
        return [_to_response(raw, "batch") for raw in raw_batch]

    async def _request(self, method: str, params: Sequence[Any]) -> Any:
        try:
            return await self._provider.make_request(method, list(params))
        except (OSError, ConnectionError) as e:
            raise RpcTransportError(f"Provider failure: {e}", method=method, params=list(params)) from e

    async def close(self) -> None:
        disconnect = getattr(self._provider, "disconnect", None)
        if disconnect is None:
            return
        try:
            await disconnect()
        except NotImplementedError:
            # Stateless providers hold no connection to release
            pass


def _to_response(raw: Any, method: str, default_id: Any = None) -> RpcResponse:
    if not isinstance(raw, Mapping):
        raise RpcTransportError("Provider returned a non-object reply", method=method)
    error = raw.get("error")
    if error is not None and not isinstance(error, Mapping):
        error = {"message": str(error)}
    return RpcResponse(
        id=raw.get("id", default_id),
        result=raw.get("result"),
        error=dict(error) if error is not None else None,
    )
