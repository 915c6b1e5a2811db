"""
Shared fixtures: a scripted in-memory transport and test accounts.
"""

from typing import Any, Callable, Dict, List, Sequence, Tuple

import pytest
from eth_account import Account

from ethcontract.errors import RpcError
from ethcontract.transport.base import RpcRequest, RpcResponse, Transport


# =============================================================================
# Test Constants
# =============================================================================

TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ADDRESS = Account.from_key(TEST_PRIVATE_KEY).address

CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
OTHER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

TX_HASH = "0x" + "ab" * 32


# =============================================================================
# Fake Transport
# =============================================================================


class FakeTransport(Transport):
    """
    Transport that answers from a script.

    ``on(method, *replies)`` queues replies for a method; each call pops one,
    and the last reply keeps answering once the queue is down to it. A reply
    may be a value, an exception (raised), or a callable taking the params.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, List[Any]]] = []
        self.batches: List[List[RpcRequest]] = []
        self.batch_reply: Callable[[Sequence[RpcRequest]], List[RpcResponse]] = None
        self._script: Dict[str, List[Any]] = {}

    def on(self, method: str, *replies: Any) -> "FakeTransport":
        self._script.setdefault(method, []).extend(replies)
        return self

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    def params_of(self, method: str) -> List[List[Any]]:
        return [params for name, params in self.calls if name == method]

    async def send(self, method: str, params: Sequence[Any]) -> Any:
        self.calls.append((method, list(params)))
        queue = self._script.get(method)
        if not queue:
            raise AssertionError(f"Unexpected RPC call: {method}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(list(params))
        return reply

    async def send_batch(self, requests: Sequence[RpcRequest]) -> List[RpcResponse]:
        self.batches.append(list(requests))
        if self.batch_reply is not None:
            return self.batch_reply(requests)
        responses = []
        for request in requests:
            try:
                result = await self.send(request.method, request.params)
            except RpcError as e:
                error = {"code": e.rpc_code, "message": e.message, "data": e.data}
                responses.append(RpcResponse(id=request.id, error=error))
            else:
                responses.append(RpcResponse(id=request.id, result=result))
        return responses


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def transport() -> FakeTransport:
    """Fresh scripted transport."""
    return FakeTransport()


@pytest.fixture
def private_key() -> str:
    return TEST_PRIVATE_KEY


@pytest.fixture
def sender() -> str:
    return TEST_ADDRESS


@pytest.fixture
def erc20_abi() -> List[Dict[str, Any]]:
    """Trimmed ERC-20 ABI with an overload, a custom error and a fallback."""
    return [
        {
            "type": "function",
            "name": "balanceOf",
            "stateMutability": "view",
            "inputs": [{"name": "owner", "type": "address"}],
            "outputs": [{"name": "", "type": "uint256"}],
        },
        {
            "type": "function",
            "name": "transfer",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "to", "type": "address"},
                {"name": "amount", "type": "uint256"},
            ],
            "outputs": [{"name": "", "type": "bool"}],
        },
        {
            "type": "function",
            "name": "mint",
            "stateMutability": "payable",
            "inputs": [],
            "outputs": [],
        },
        {
            "type": "function",
            "name": "safeTransferFrom",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "from", "type": "address"},
                {"name": "to", "type": "address"},
                {"name": "id", "type": "uint256"},
            ],
            "outputs": [],
        },
        {
            "type": "function",
            "name": "safeTransferFrom",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "from", "type": "address"},
                {"name": "to", "type": "address"},
                {"name": "id", "type": "uint256"},
                {"name": "data", "type": "bytes"},
            ],
            "outputs": [],
        },
        {
            "type": "function",
            "name": "metadata",
            "stateMutability": "view",
            "inputs": [],
            "outputs": [
                {"name": "name", "type": "string"},
                {"name": "decimals", "type": "uint8"},
            ],
        },
        {
            "type": "event",
            "name": "Transfer",
            "anonymous": False,
            "inputs": [
                {"name": "from", "type": "address", "indexed": True},
                {"name": "to", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ],
        },
        {
            "type": "error",
            "name": "InsufficientBalance",
            "inputs": [
                {"name": "available", "type": "uint256"},
                {"name": "required", "type": "uint256"},
            ],
        },
        {"type": "fallback", "stateMutability": "nonpayable"},
        {"type": "receive", "stateMutability": "payable"},
    ]
