"""
Solidity ABI: types, value codec, signatures and contract ABI documents.
"""

from ethcontract.abi.types import (
    AbiType,
    Address,
    Array,
    Bool,
    Bytes,
    FixedArray,
    FixedBytes,
    Int,
    String,
    Tuple,
    UInt,
    canonical_signature,
    parse_type,
    parse_types,
)
from ethcontract.abi.codec import (
    AbiValue,
    decode,
    decode_single,
    decode_topic,
    encode,
    encode_single,
    encode_topic,
    encode_values,
    is_value_type,
)
from ethcontract.abi.signatures import (
    ErrorSignature,
    EventSignature,
    FunctionSignature,
    Param,
    selector_of,
    topic_of,
)
from ethcontract.abi.revert import decode_revert_reason, encode_revert_reason
from ethcontract.abi.contract import AbiEntry, AbiParam, ContractAbi

__all__ = [
    # Types
    "AbiType",
    "Address",
    "Array",
    "Bool",
    "Bytes",
    "FixedArray",
    "FixedBytes",
    "Int",
    "String",
    "Tuple",
    "UInt",
    "canonical_signature",
    "parse_type",
    "parse_types",
    # Codec
    "AbiValue",
    "decode",
    "decode_single",
    "decode_topic",
    "encode",
    "encode_single",
    "encode_topic",
    "encode_values",
    "is_value_type",
    # Signatures
    "ErrorSignature",
    "EventSignature",
    "FunctionSignature",
    "Param",
    "selector_of",
    "topic_of",
    # Reverts
    "decode_revert_reason",
    "encode_revert_reason",
    # Documents
    "AbiEntry",
    "AbiParam",
    "ContractAbi",
]
