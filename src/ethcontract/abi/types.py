"""
Solidity ABI types.

The ABI type system is a closed set of variants:

- ``UInt(bits)`` / ``Int(bits)``: bits in 8..256, multiple of 8
- ``Address()``, ``Bool()``
- ``FixedBytes(size)``: size in 1..32
- ``Bytes()``, ``String()``: dynamic byte strings
- ``FixedArray(item, length)``: length > 0
- ``Array(item)``: dynamic length
- ``Tuple(components)``: the empty tuple only as a top-level parameter list

Every type knows its canonical signature text (``canonical``), whether it is
dynamic (``is_dynamic``) and how many bytes it occupies in the head of an
enclosing block (``head_size``).

``parse_type`` turns Solidity type strings (as found in ABI JSON) into these
variants and raises AbiParseError for anything it does not recognize.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple as TypingTuple

from ethcontract.constants import ABI_WORD_LENGTH
from ethcontract.errors import AbiParseError


class AbiType:
    """Base class of all ABI type variants."""

    @property
    def canonical(self) -> str:
        raise NotImplementedError

    @property
    def is_dynamic(self) -> bool:
        return False

    @property
    def head_size(self) -> int:
        """Bytes this type takes in the head of its enclosing block."""
        return ABI_WORD_LENGTH

    def __str__(self) -> str:
        return self.canonical


@dataclass(frozen=True)
class UInt(AbiType):
    bits: int = 256

    def __post_init__(self) -> None:
        _check_bits(self.bits, "uint")

    @property
    def canonical(self) -> str:
        return f"uint{self.bits}"

    @property
    def max_value(self) -> int:
        return (1 << self.bits) - 1


@dataclass(frozen=True)
class Int(AbiType):
    bits: int = 256

    def __post_init__(self) -> None:
        _check_bits(self.bits, "int")

    @property
    def canonical(self) -> str:
        return f"int{self.bits}"

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1))

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1


@dataclass(frozen=True)
class Address(AbiType):
    @property
    def canonical(self) -> str:
        return "address"


@dataclass(frozen=True)
class Bool(AbiType):
    @property
    def canonical(self) -> str:
        return "bool"


@dataclass(frozen=True)
class FixedBytes(AbiType):
    size: int

    def __post_init__(self) -> None:
        if isinstance(self.size, bool) or not isinstance(self.size, int) or not 1 <= self.size <= 32:
            raise AbiParseError(f"bytes{self.size}", reason="size must be between 1 and 32")

    @property
    def canonical(self) -> str:
        return f"bytes{self.size}"


@dataclass(frozen=True)
class Bytes(AbiType):
    @property
    def canonical(self) -> str:
        return "bytes"

    @property
    def is_dynamic(self) -> bool:
        return True


@dataclass(frozen=True)
class String(AbiType):
    @property
    def canonical(self) -> str:
        return "string"

    @property
    def is_dynamic(self) -> bool:
        return True


@dataclass(frozen=True)
class FixedArray(AbiType):
    item: AbiType
    length: int

    def __post_init__(self) -> None:
        if isinstance(self.length, bool) or not isinstance(self.length, int) or self.length <= 0:
            raise AbiParseError(
                f"{self.item.canonical}[{self.length}]",
                reason="fixed array length must be positive",
            )
        _check_item_width(self.item, self.canonical)

    @property
    def canonical(self) -> str:
        return f"{self.item.canonical}[{self.length}]"

    @property
    def is_dynamic(self) -> bool:
        return self.item.is_dynamic

    @property
    def head_size(self) -> int:
        if self.is_dynamic:
            return ABI_WORD_LENGTH
        return self.item.head_size * self.length


@dataclass(frozen=True)
class Array(AbiType):
    item: AbiType

    def __post_init__(self) -> None:
        _check_item_width(self.item, self.canonical)

    @property
    def canonical(self) -> str:
        return f"{self.item.canonical}[]"

    @property
    def is_dynamic(self) -> bool:
        return True


@dataclass(frozen=True)
class Tuple(AbiType):
    components: TypingTuple[AbiType, ...]

    def __init__(self, components: Sequence[AbiType]) -> None:
        object.__setattr__(self, "components", tuple(components))
        for component in self.components:
            if isinstance(component, Tuple) and not component.components:
                raise AbiParseError(self.canonical, reason="empty tuple cannot be a component")

    @property
    def canonical(self) -> str:
        return "(" + ",".join(c.canonical for c in self.components) + ")"

    @property
    def is_dynamic(self) -> bool:
        return any(c.is_dynamic for c in self.components)

    @property
    def head_size(self) -> int:
        if self.is_dynamic:
            return ABI_WORD_LENGTH
        return sum(c.head_size for c in self.components)


def _check_item_width(item: AbiType, canonical: str) -> None:
    # Zero-width items would let a forged length claim any number of elements
    if not item.is_dynamic and item.head_size == 0:
        raise AbiParseError(canonical, reason="array items must not be empty tuples")


def _check_bits(bits: int, prefix: str) -> None:
    if isinstance(bits, bool) or not isinstance(bits, int) or bits % 8 != 0 or not 8 <= bits <= 256:
        raise AbiParseError(f"{prefix}{bits}", reason="bit width must be a multiple of 8 in 8..256")


# --- Type-string parsing -----------------------------------------------------

_INT_RE = re.compile(r"^(u?int)(\d*)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")
_ARRAY_SUFFIX_RE = re.compile(r"^(.*)\[(\d*)\]$")


def _split_top_level(inner: str) -> List[str]:
    """Split on commas that are not nested inside parentheses."""
    parts: List[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(inner):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise AbiParseError(inner, reason="unbalanced parentheses")
        elif ch == "," and depth == 0:
            parts.append(inner[start:i])
            start = i + 1
    if depth != 0:
        raise AbiParseError(inner, reason="unbalanced parentheses")
    parts.append(inner[start:])
    return parts


def parse_type(
    type_str: str,
    components: Optional[Sequence[Mapping[str, Any]]] = None,
) -> AbiType:
    """
    Parse a Solidity ABI type string.

    Args:
        type_str: Type as written in ABI JSON, e.g. ``"uint256"``,
            ``"bytes32[]"``, ``"tuple[2]"`` or ``"(address,uint256)"``.
        components: ABI JSON ``components`` for ``tuple`` types.

    Returns:
        The parsed AbiType.

    Raises:
        AbiParseError: If the string is not a supported Solidity type.
    """
    if not isinstance(type_str, str):
        raise AbiParseError(repr(type_str), reason="type must be a string")
    text = type_str.strip()
    if not text:
        raise AbiParseError(type_str, reason="empty type")

    match = _ARRAY_SUFFIX_RE.match(text)
    if match and not text.endswith(")"):
        base, size = match.group(1), match.group(2)
        item = parse_type(base, components)
        if size == "":
            return Array(item)
        return FixedArray(item, int(size))

    if text == "tuple":
        if components is None:
            raise AbiParseError(type_str, reason="tuple type requires components")
        return Tuple(
            [parse_type(c.get("type", ""), c.get("components")) for c in components]
        )

    if text.startswith("(") and text.endswith(")"):
        inner = text[1:-1]
        if inner == "":
            return Tuple([])
        return Tuple([parse_type(part) for part in _split_top_level(inner)])

    if text == "address":
        return Address()
    if text == "bool":
        return Bool()
    if text == "string":
        return String()
    if text == "bytes":
        return Bytes()

    match = _INT_RE.match(text)
    if match:
        bits = int(match.group(2)) if match.group(2) else 256
        if match.group(1) == "uint":
            return UInt(bits)
        return Int(bits)

    match = _FIXED_BYTES_RE.match(text)
    if match:
        return FixedBytes(int(match.group(1)))

    raise AbiParseError(type_str, reason="unknown or unsupported Solidity type")


def parse_types(type_strs: Sequence[str]) -> List[AbiType]:
    """Parse a list of type strings."""
    return [parse_type(t) for t in type_strs]


def canonical_signature(name: str, types: Sequence[AbiType]) -> str:
    """Render ``name(type1,type2,...)``, the text hashed for selectors and topics."""
    return f"{name}(" + ",".join(t.canonical for t in types) + ")"
