"""
Contract interaction: calls, batching, transactions, events and instances.
"""

from ethcontract.contract.batch import BatchCoordinator, BatchHandle
from ethcontract.contract.calls import CallExecutor, PendingCall
from ethcontract.contract.transactions import TransactionPipeline
from ethcontract.contract.events import EventStream, build_filter, decode_log
from ethcontract.contract.instance import (
    ContractInstance,
    EventQuery,
    MethodBuilder,
    ViewMethodBuilder,
)

__all__ = [
    "BatchCoordinator",
    "BatchHandle",
    "CallExecutor",
    "PendingCall",
    "TransactionPipeline",
    "EventStream",
    "build_filter",
    "decode_log",
    "ContractInstance",
    "EventQuery",
    "MethodBuilder",
    "ViewMethodBuilder",
]
