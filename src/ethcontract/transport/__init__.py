"""
JSON-RPC transports.
"""

from ethcontract.transport.base import RpcRequest, RpcResponse, Transport
from ethcontract.transport.http import HttpTransport
from ethcontract.transport.web3 import Web3Transport

__all__ = [
    "RpcRequest",
    "RpcResponse",
    "Transport",
    "HttpTransport",
    "Web3Transport",
]
