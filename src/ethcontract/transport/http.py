"""
HTTP JSON-RPC transport over httpx.

Network failures and HTTP error statuses are retried with exponential
backoff; JSON-RPC error replies are returned to the caller untouched since
they are answers, not failures to get one.
"""

from __future__ import annotations

import itertools
from typing import Any, List, Optional, Sequence

import httpx

from ethcontract.config import TransportConfig
from ethcontract.errors import RpcError, RpcTransportError
from ethcontract.transport.base import RpcRequest, RpcResponse, Transport
from ethcontract.utils.logging import get_logger
from ethcontract.utils.retry import retry_async

_logger = get_logger(__name__)


class HttpTransport(Transport):
    """
    JSON-RPC 2.0 over HTTP POST.

    Example:
        ```python
        async with HttpTransport(TransportConfig(rpc_url="http://localhost:8545")) as transport:
            head = await transport.send("eth_blockNumber", [])
        ```
    """

    def __init__(
        self,
        config: TransportConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Args:
            config: Endpoint, timeout and retry settings.
            client: Pre-built client (tests pass one with ``httpx.MockTransport``).
        """
        self._config = config
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_ms / 1000),
            headers=config.headers,
        )
        self._owns_client = client is None
        self._ids = itertools.count(1)
        self._retry_config = config.retry_config((RpcTransportError,))

    @property
    def rpc_url(self) -> str:
        return self._config.rpc_url

    def next_id(self) -> int:
        return next(self._ids)

    async def send(self, method: str, params: Sequence[Any]) -> Any:
        request = RpcRequest(self.next_id(), method, list(params))
        payload = await self._post(request.to_json(), method)
        if not isinstance(payload, dict):
            raise RpcTransportError(
                "Expected a JSON-RPC object in reply",
                method=method,
                params=request.params,
            )
        response = RpcResponse.from_json(payload)
        if response.is_error:
            _logger.debug(
                "RPC returned error",
                extra={"method": method, "rpc_code": response.error.get("code")},
            )
        return response.unwrap(method, request.params)

    async def send_batch(self, requests: Sequence[RpcRequest]) -> List[RpcResponse]:
        if not requests:
            return []
        payload = await self._post([r.to_json() for r in requests], "batch")
        if isinstance(payload, dict) and "error" in payload:
            # Some nodes reject a whole batch with a single error object
            raise RpcError.from_response(payload["error"], method="batch")
        if not isinstance(payload, list):
            raise RpcTransportError("Expected a JSON-RPC array in reply", method="batch")
        return [RpcResponse.from_json(item) for item in payload]

    async def _post(self, body: Any, method: str) -> Any:
        async def do_post() -> Any:
            try:
                response = await self._client.post(self._config.rpc_url, json=body)
            except httpx.TransportError as e:
                raise RpcTransportError(
                    f"Transport failure: {type(e).__name__}: {e}",
                    method=method,
                ) from e

            if response.status_code >= 500 or response.status_code == 429:
                raise RpcTransportError(
                    f"HTTP {response.status_code} from node",
                    method=method,
                    details={"status_code": response.status_code},
                )
            if response.status_code != 200:
                # Client errors are not worth retrying; surface them as node errors
                raise RpcError(
                    f"HTTP {response.status_code} from node",
                    method=method,
                    details={"status_code": response.status_code},
                )
            try:
                return response.json()
            except ValueError as e:
                raise RpcError("Node replied with invalid JSON", method=method) from e

        return await retry_async(do_post, self._retry_config, operation=method)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
