"""
ethcontract - typed smart contract interaction over JSON-RPC.

Quick Start:
    >>> import asyncio
    >>> from ethcontract import (
    ...     ContractAbi, ContractInstance, HttpTransport, LocalSigner, TransportConfig,
    ... )
    >>>
    >>> async def main():
    ...     async with HttpTransport(TransportConfig.from_env()) as transport:
    ...         token = ContractInstance(
    ...             ContractAbi.from_json(ERC20_ABI),
    ...             "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    ...             transport,
    ...             signer=LocalSigner.from_key(os.environ["PRIVATE_KEY"]),
    ...         )
    ...         print(await token.view_method("totalSupply").call())
    ...
    >>> asyncio.run(main())

Modules:
- `abi`: Solidity ABI types, codec, signatures and ABI documents
- `signing`: Local, node-managed and offline signers; transaction serialization
- `contract`: CallExecutor, BatchCoordinator, TransactionPipeline, EventStream
- `transport`: JSON-RPC transports (httpx, web3.py providers)
- `errors`: Exception hierarchy
- `utils`: Logging, retry and hex helpers
"""

from ethcontract.version import __version__, __version_info__

# ABI
from ethcontract.abi import (
    AbiType,
    AbiValue,
    ContractAbi,
    ErrorSignature,
    EventSignature,
    FunctionSignature,
    Param,
    decode,
    encode,
    encode_values,
    parse_type,
)

# Signing
from ethcontract.signing import (
    LocalSigner,
    NodeManagedSigner,
    OfflineSigner,
    SecretKey,
    Signature,
    Signer,
    recovery_id_from_v,
    v_from_recovery_id,
)

# Transport
from ethcontract.transport import HttpTransport, RpcRequest, RpcResponse, Transport, Web3Transport

# Types
from ethcontract.types import (
    ConfirmationPolicy,
    DecodedEvent,
    FeeDefaults,
    IndexedHash,
    Log,
    LogFilter,
    PendingTransaction,
    TransactionRequest,
    TransactionState,
)

# Contract interaction
from ethcontract.contract import (
    BatchCoordinator,
    BatchHandle,
    CallExecutor,
    ContractInstance,
    EventStream,
    PendingCall,
    TransactionPipeline,
    build_filter,
    decode_log,
)

# Config
from ethcontract.config import PipelineConfig, TransportConfig

# Errors
from ethcontract.errors import (
    AbiParseError,
    BatchDesyncError,
    CallRevertedError,
    ConfirmationTimeoutError,
    DecodeError,
    EncodeError,
    EthContractError,
    RpcError,
    SignerError,
    SignerUnavailableError,
    TransactionRevertedError,
    ValidationError,
)

# Logging
from ethcontract.utils.logging import configure_logging, get_logger

__all__ = [
    "__version__",
    "__version_info__",
    # ABI
    "AbiType",
    "AbiValue",
    "ContractAbi",
    "ErrorSignature",
    "EventSignature",
    "FunctionSignature",
    "Param",
    "decode",
    "encode",
    "encode_values",
    "parse_type",
    # Signing
    "LocalSigner",
    "NodeManagedSigner",
    "OfflineSigner",
    "SecretKey",
    "Signature",
    "Signer",
    "recovery_id_from_v",
    "v_from_recovery_id",
    # Transport
    "HttpTransport",
    "RpcRequest",
    "RpcResponse",
    "Transport",
    "Web3Transport",
    # Types
    "ConfirmationPolicy",
    "DecodedEvent",
    "FeeDefaults",
    "IndexedHash",
    "Log",
    "LogFilter",
    "PendingTransaction",
    "TransactionRequest",
    "TransactionState",
    # Contract interaction
    "BatchCoordinator",
    "BatchHandle",
    "CallExecutor",
    "ContractInstance",
    "EventStream",
    "PendingCall",
    "TransactionPipeline",
    "build_filter",
    "decode_log",
    # Config
    "PipelineConfig",
    "TransportConfig",
    # Errors
    "AbiParseError",
    "BatchDesyncError",
    "CallRevertedError",
    "ConfirmationTimeoutError",
    "DecodeError",
    "EncodeError",
    "EthContractError",
    "RpcError",
    "SignerError",
    "SignerUnavailableError",
    "TransactionRevertedError",
    "ValidationError",
    # Logging
    "configure_logging",
    "get_logger",
]
