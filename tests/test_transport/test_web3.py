"""
Tests for Web3Transport with stand-in async providers.
"""

from typing import Any, List, Tuple
from unittest.mock import AsyncMock

import pytest

from ethcontract.errors import RpcError, RpcTransportError
from ethcontract.transport.base import RpcRequest
from ethcontract.transport.web3 import Web3Transport


class SequentialProvider:
    """Provider exposing only make_request."""

    def __init__(self) -> None:
        self.requests: List[Tuple[str, Any]] = []

    async def make_request(self, method: str, params: Any) -> Any:
        self.requests.append((method, params))
        if method == "eth_fail":
            return {"jsonrpc": "2.0", "id": 0, "error": {"code": -32601, "message": "method not found"}}
        if method == "eth_down":
            raise ConnectionRefusedError("node down")
        return {"jsonrpc": "2.0", "id": len(self.requests), "result": method}


class BatchingProvider(SequentialProvider):
    """Provider that also batches."""

    def __init__(self) -> None:
        super().__init__()
        self.batches: List[Any] = []
        self.disconnect = AsyncMock()

    async def make_batch_request(self, requests: Any) -> Any:
        self.batches.append(requests)
        return [{"jsonrpc": "2.0", "id": i, "result": method} for i, (method, _) in enumerate(requests)]


class TestWeb3Transport:
    """Tests for Web3Transport."""

    @pytest.mark.asyncio
    async def test_send_unwraps_result(self) -> None:
        provider = SequentialProvider()
        transport = Web3Transport(provider)

        assert await transport.send("eth_chainId", []) == "eth_chainId"
        assert provider.requests == [("eth_chainId", [])]

    @pytest.mark.asyncio
    async def test_send_raises_node_error(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            await Web3Transport(SequentialProvider()).send("eth_fail", [])
        assert exc_info.value.rpc_code == -32601

    @pytest.mark.asyncio
    async def test_provider_failure_is_transport_error(self) -> None:
        with pytest.raises(RpcTransportError):
            await Web3Transport(SequentialProvider()).send("eth_down", [])

    @pytest.mark.asyncio
    async def test_batch_falls_back_to_sequential(self) -> None:
        provider = SequentialProvider()
        responses = await Web3Transport(provider).send_batch(
            [RpcRequest(10, "eth_chainId", []), RpcRequest(11, "eth_fail", [])]
        )

        assert len(provider.requests) == 2
        assert responses[0].result == "eth_chainId"
        assert responses[1].is_error

    @pytest.mark.asyncio
    async def test_batch_uses_provider_batching(self) -> None:
        provider = BatchingProvider()
        responses = await Web3Transport(provider).send_batch(
            [RpcRequest(1, "eth_chainId", []), RpcRequest(2, "eth_blockNumber", [])]
        )

        assert provider.batches == [[("eth_chainId", []), ("eth_blockNumber", [])]]
        assert [r.result for r in responses] == ["eth_chainId", "eth_blockNumber"]
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_close_disconnects(self) -> None:
        provider = BatchingProvider()
        await Web3Transport(provider).close()
        provider.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_disconnect(self) -> None:
        await Web3Transport(SequentialProvider()).close()
