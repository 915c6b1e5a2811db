"""
Solidity ABI codec.

Converts between Python values and the ABI wire encoding used by contract
calls, return data and event logs. The head/tail encoding itself is done by
eth-abi (strict mode); this module feeds it the canonical type strings of
our AbiType tree, maps its failures onto EncodeError / DecodeError codes and
normalizes decoded values.

Python value mapping:

==============  ===========================================================
ABI type        Python value
==============  ===========================================================
uintN / intN    ``int`` (range checked against N)
address         checksummed ``str`` (``bytes`` of length 20 also accepted)
bool            ``bool``
bytesN          ``bytes`` of at most N bytes (right-padded)
bytes           ``bytes``
string          ``str``
T[N] / T[]      ``list`` (any list or tuple accepted on encode)
tuple           ``tuple`` (any list or tuple accepted on encode)
==============  ===========================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple as TypingTuple

import eth_abi
from eth_abi.exceptions import (
    DecodingError,
    EncodingError,
    InsufficientDataBytes,
    InvalidPointer,
    NonEmptyPaddingBytes,
)
from eth_utils import keccak, to_checksum_address

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
)
from ethcontract.constants import ABI_WORD_LENGTH
from ethcontract.errors import DecodeError, EncodeError

_WORD = ABI_WORD_LENGTH


@dataclass(frozen=True)
class AbiValue:
    """A value tagged with the ABI type it is encoded as."""

    type: AbiType
    value: Any


def _type_strings(types: Sequence[AbiType]) -> List[str]:
    return [t.canonical for t in types]


def _signature(types: Sequence[AbiType]) -> str:
    return "(" + ",".join(_type_strings(types)) + ")"


# --- Encoding ----------------------------------------------------------------


def encode(types: Sequence[AbiType], values: Sequence[Any]) -> bytes:
    """
    ABI-encode ``values`` as a head/tail block of ``types``.

    Raises:
        EncodeError: If the number of values does not match, or a value does
            not fit its declared type.
    """
    if len(types) != len(values):
        raise EncodeError(
            f"Expected {len(types)} values, got {len(values)}",
            abi_type=_signature(types),
        )
    if not types:
        return b""
    try:
        return eth_abi.encode(_type_strings(types), list(values))
    except EncodingError as e:
        raise EncodeError(str(e), abi_type=_signature(types)) from None


def encode_values(values: Sequence[AbiValue]) -> bytes:
    """ABI-encode a sequence of tagged values."""
    return encode([v.type for v in values], [v.value for v in values])


def encode_single(abi_type: AbiType, value: Any) -> bytes:
    """Encode one value as if it were the only element of a sequence."""
    return encode([abi_type], [value])


# --- Decoding ----------------------------------------------------------------


def decode(types: Sequence[AbiType], data: bytes) -> TypingTuple[Any, ...]:
    """
    Decode a head/tail block of ``types`` from ``data``.

    Trailing bytes after the decoded values are ignored. Error codes:

    - ``OUT_OF_BOUNDS``: truncated data, or an offset/length past the end
    - ``INVALID_PADDING``: non-zero padding or a bad sign extension
    - ``INVALID_VALUE``: a bool other than 0/1, or a string that is not UTF-8

    Raises:
        DecodeError: If the payload is truncated or malformed.
    """
    if not types:
        return ()
    signature = _signature(types)
    try:
        values = eth_abi.decode(_type_strings(types), bytes(data), strict=True)
    except (InsufficientDataBytes, InvalidPointer, OverflowError) as e:
        raise DecodeError(str(e), code="OUT_OF_BOUNDS", abi_type=signature) from None
    except NonEmptyPaddingBytes as e:
        # eth-abi reports an out-of-range bool as a padding failure
        code = "INVALID_VALUE" if str(e).startswith("Boolean") else "INVALID_PADDING"
        raise DecodeError(str(e), code=code, abi_type=signature) from None
    except UnicodeDecodeError:
        raise DecodeError(
            "String payload is not valid UTF-8", code="INVALID_VALUE", abi_type=signature
        ) from None
    except DecodingError as e:
        raise DecodeError(str(e), code="INVALID_VALUE", abi_type=signature) from None
    return tuple(_normalize(t, v) for t, v in zip(types, values))


def decode_single(abi_type: AbiType, data: bytes) -> Any:
    """Decode one value encoded as the only element of a sequence."""
    return decode([abi_type], data)[0]


def _normalize(abi_type: AbiType, value: Any) -> Any:
    """Checksum addresses, turn arrays into lists, keep tuples as tuples."""
    if isinstance(abi_type, Address):
        return to_checksum_address(value)
    if isinstance(abi_type, (FixedArray, Array)):
        return [_normalize(abi_type.item, item) for item in value]
    if isinstance(abi_type, Tuple):
        return tuple(_normalize(c, item) for c, item in zip(abi_type.components, value))
    return value


# --- Event topics ------------------------------------------------------------


def is_value_type(abi_type: AbiType) -> bool:
    """True for types stored verbatim in an event topic (one 32-byte word)."""
    return isinstance(abi_type, (UInt, Int, Address, Bool, FixedBytes))


def encode_topic(abi_type: AbiType, value: Any) -> bytes:
    """
    Encode an indexed event parameter as a 32-byte topic.

    Value types are stored as their ABI word. Everything else (strings,
    bytes, arrays, tuples) is stored as the keccak-256 hash of its in-place
    encoding, so the original value cannot be recovered from the topic.
    """
    if is_value_type(abi_type):
        return encode_single(abi_type, value)
    return keccak(_encode_in_place(abi_type, value, nested=False))


def decode_topic(abi_type: AbiType, topic: bytes) -> Any:
    """Decode a value-type indexed parameter from its topic word."""
    if len(topic) != _WORD:
        raise DecodeError.out_of_bounds(abi_type.canonical, 0, _WORD, len(topic))
    if not is_value_type(abi_type):
        raise DecodeError(
            f"Indexed {abi_type.canonical} is stored as a hash and cannot be decoded",
            code="INVALID_VALUE",
            abi_type=abi_type.canonical,
        )
    return decode_single(abi_type, topic)


def _encode_in_place(abi_type: AbiType, value: Any, nested: bool) -> bytes:
    # Solidity hashes indexed reference types without offsets or lengths;
    # only nested byte strings are padded to a word boundary.
    if is_value_type(abi_type):
        return encode_single(abi_type, value)
    if isinstance(abi_type, String):
        if not isinstance(value, str):
            raise EncodeError(f"Expected str, got {type(value).__name__}", abi_type="string")
        return _pad_right(value.encode("utf-8")) if nested else value.encode("utf-8")
    if isinstance(abi_type, Bytes):
        if not isinstance(value, (bytes, bytearray)):
            raise EncodeError(f"Expected bytes, got {type(value).__name__}", abi_type="bytes")
        return _pad_right(bytes(value)) if nested else bytes(value)
    if isinstance(abi_type, (FixedArray, Array, Tuple)):
        if not isinstance(value, (list, tuple)):
            raise EncodeError(
                f"Expected a list or tuple for {abi_type.canonical}, got {type(value).__name__}",
                abi_type=abi_type.canonical,
            )
        if isinstance(abi_type, Tuple):
            item_types = list(abi_type.components)
        elif isinstance(abi_type, FixedArray):
            item_types = [abi_type.item] * abi_type.length
        else:
            item_types = [abi_type.item] * len(value)
        if len(value) != len(item_types):
            raise EncodeError(
                f"Expected {len(item_types)} items for {abi_type.canonical}, got {len(value)}",
                abi_type=abi_type.canonical,
            )
        return b"".join(
            _encode_in_place(item_type, item, nested=True)
            for item_type, item in zip(item_types, value)
        )
    raise EncodeError(f"Unsupported ABI type: {abi_type!r}")


def _pad_right(raw: bytes) -> bytes:
    remainder = len(raw) % _WORD
    if remainder:
        return raw + b"\x00" * (_WORD - remainder)
    return raw
