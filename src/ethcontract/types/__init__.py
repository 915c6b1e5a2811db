"""
Data types shared by the pipeline, call executor and event stream.
"""

from ethcontract.types.transaction import (
    ConfirmationPolicy,
    FeeDefaults,
    PendingTransaction,
    TransactionRequest,
    TransactionState,
)
from ethcontract.types.log import (
    BlockTag,
    DecodedEvent,
    IndexedHash,
    Log,
    LogFilter,
    block_param,
)

__all__ = [
    # Transactions
    "ConfirmationPolicy",
    "FeeDefaults",
    "PendingTransaction",
    "TransactionRequest",
    "TransactionState",
    # Logs
    "BlockTag",
    "DecodedEvent",
    "IndexedHash",
    "Log",
    "LogFilter",
    "block_param",
]
