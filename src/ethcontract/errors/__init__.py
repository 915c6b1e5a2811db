"""
Exception hierarchy for ethcontract.

Every exception derives from EthContractError and carries a machine-readable
``code`` plus a ``details`` dictionary.
"""

from ethcontract.errors.base import EthContractError, ValidationError
from ethcontract.errors.abi import AbiError, AbiParseError, DecodeError, EncodeError
from ethcontract.errors.rpc import BatchDesyncError, BatchError, RpcError, RpcTransportError
from ethcontract.errors.signer import SignerError, SignerUnavailableError
from ethcontract.errors.execution import (
    CallRevertedError,
    ConfirmationTimeoutError,
    PipelineError,
    TransactionRevertedError,
)

__all__ = [
    "EthContractError",
    "ValidationError",
    # ABI
    "AbiError",
    "AbiParseError",
    "DecodeError",
    "EncodeError",
    # Transport
    "RpcError",
    "RpcTransportError",
    "BatchError",
    "BatchDesyncError",
    # Signing
    "SignerError",
    "SignerUnavailableError",
    # Execution
    "CallRevertedError",
    "PipelineError",
    "ConfirmationTimeoutError",
    "TransactionRevertedError",
]
