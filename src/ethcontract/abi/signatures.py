"""
Function, event and error signatures.

A signature pairs a name with typed parameters and derives the identifier
the network uses for it:

- functions and custom errors: 4-byte selector, the first bytes of
  ``keccak256("name(type1,type2,...)")``
- events: 32-byte topic, the full ``keccak256("Name(type1,...)")``

Parameter names never take part in the canonical text, so two functions that
differ only in parameter names share a selector.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Sequence, Tuple, Union

from eth_utils import keccak

from ethcontract.abi import codec
from ethcontract.abi.types import AbiType, Tuple as TupleType, canonical_signature, parse_type
from ethcontract.constants import (
    ABI_SELECTOR_LENGTH,
    MAX_ANONYMOUS_INDEXED_PARAMS,
    MAX_INDEXED_PARAMS,
)
from ethcontract.errors import AbiParseError, DecodeError

TypeLike = Union[str, AbiType]

_SIGNATURE_RE = re.compile(r"^\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*(\(.*\))\s*$")


@dataclass(frozen=True)
class Param:
    """A named, typed parameter. ``indexed`` only matters for events."""

    name: str
    type: AbiType
    indexed: bool = False

    @classmethod
    def of(cls, spec: Union["Param", TypeLike], name: str = "", indexed: bool = False) -> "Param":
        if isinstance(spec, Param):
            return spec
        abi_type = spec if isinstance(spec, AbiType) else parse_type(spec)
        return cls(name=name, type=abi_type, indexed=indexed)


def _params(specs: Sequence[Union[Param, TypeLike]]) -> Tuple[Param, ...]:
    return tuple(Param.of(spec) for spec in specs)


def _split_text_signature(text: str) -> Tuple[str, Tuple[AbiType, ...]]:
    match = _SIGNATURE_RE.match(text)
    if not match:
        raise AbiParseError(text, reason="expected name(type1,type2,...)")
    parsed = parse_type(match.group(2).replace(" ", ""))
    if not isinstance(parsed, TupleType):
        raise AbiParseError(text, reason="parameter list must be a parenthesized tuple")
    return match.group(1), parsed.components


@dataclass(frozen=True)
class FunctionSignature:
    """
    A contract function: name, inputs, outputs and state mutability.

    Example:
        >>> transfer = FunctionSignature.from_text("transfer(address,uint256)", outputs=["bool"])
        >>> transfer.selector.hex()
        'a9059cbb'
    """

    name: str
    inputs: Tuple[Param, ...] = ()
    outputs: Tuple[Param, ...] = ()
    state_mutability: str = "nonpayable"

    @classmethod
    def create(
        cls,
        name: str,
        inputs: Sequence[Union[Param, TypeLike]] = (),
        outputs: Sequence[Union[Param, TypeLike]] = (),
        state_mutability: str = "nonpayable",
    ) -> "FunctionSignature":
        return cls(name, _params(inputs), _params(outputs), state_mutability)

    @classmethod
    def from_text(
        cls,
        text: str,
        outputs: Sequence[Union[Param, TypeLike]] = (),
        state_mutability: str = "nonpayable",
    ) -> "FunctionSignature":
        """Build from ``"name(type1,type2)"`` text."""
        name, types = _split_text_signature(text)
        return cls.create(name, types, outputs, state_mutability)

    @property
    def input_types(self) -> Tuple[AbiType, ...]:
        return tuple(p.type for p in self.inputs)

    @property
    def output_types(self) -> Tuple[AbiType, ...]:
        return tuple(p.type for p in self.outputs)

    @cached_property
    def canonical(self) -> str:
        return canonical_signature(self.name, self.input_types)

    @cached_property
    def selector(self) -> bytes:
        return keccak(text=self.canonical)[:ABI_SELECTOR_LENGTH]

    @property
    def is_view(self) -> bool:
        return self.state_mutability in ("view", "pure")

    @property
    def payable(self) -> bool:
        return self.state_mutability == "payable"

    def encode_call(self, args: Sequence[Any]) -> bytes:
        """Selector followed by the ABI encoding of ``args``."""
        return self.selector + codec.encode(self.input_types, list(args))

    def decode_input(self, calldata: bytes) -> Tuple[Any, ...]:
        """Decode call data produced by :meth:`encode_call`."""
        if calldata[:ABI_SELECTOR_LENGTH] != self.selector:
            raise DecodeError(
                f"Call data does not start with the selector of {self.canonical}",
                code="INVALID_VALUE",
            )
        return codec.decode(self.input_types, calldata[ABI_SELECTOR_LENGTH:])

    def decode_output(self, data: bytes) -> Any:
        """
        Decode return data.

        Returns None for functions without outputs, the bare value for a
        single output and a tuple otherwise.
        """
        if not self.outputs:
            return None
        values = codec.decode(self.output_types, data)
        if len(values) == 1:
            return values[0]
        return values

    def __str__(self) -> str:
        return self.canonical


@dataclass(frozen=True)
class EventSignature:
    """
    A contract event: name, ordered params (some indexed) and anonymity.

    Non-anonymous events carry their topic in topic slot 0, leaving up to
    three slots for indexed params; anonymous events may index four.
    """

    name: str
    params: Tuple[Param, ...] = ()
    anonymous: bool = False

    def __post_init__(self) -> None:
        limit = MAX_ANONYMOUS_INDEXED_PARAMS if self.anonymous else MAX_INDEXED_PARAMS
        if sum(1 for p in self.params if p.indexed) > limit:
            raise AbiParseError(
                self.canonical,
                reason=f"at most {limit} indexed params are allowed",
            )

    @classmethod
    def create(
        cls,
        name: str,
        params: Sequence[Union[Param, Tuple[TypeLike, bool]]],
        anonymous: bool = False,
    ) -> "EventSignature":
        """Build from Params or ``(type, indexed)`` pairs."""
        built = []
        for spec in params:
            if isinstance(spec, Param):
                built.append(spec)
            else:
                type_spec, indexed = spec
                built.append(Param.of(type_spec, indexed=indexed))
        return cls(name, tuple(built), anonymous)

    @property
    def types(self) -> Tuple[AbiType, ...]:
        return tuple(p.type for p in self.params)

    @property
    def indexed_params(self) -> Tuple[Param, ...]:
        return tuple(p for p in self.params if p.indexed)

    @property
    def data_params(self) -> Tuple[Param, ...]:
        return tuple(p for p in self.params if not p.indexed)

    @cached_property
    def canonical(self) -> str:
        return canonical_signature(self.name, self.types)

    @cached_property
    def topic(self) -> bytes:
        return keccak(text=self.canonical)

    def __str__(self) -> str:
        return self.canonical


@dataclass(frozen=True)
class ErrorSignature:
    """A custom Solidity error (``error Name(...)``)."""

    name: str
    inputs: Tuple[Param, ...] = field(default_factory=tuple)

    @property
    def input_types(self) -> Tuple[AbiType, ...]:
        return tuple(p.type for p in self.inputs)

    @cached_property
    def canonical(self) -> str:
        return canonical_signature(self.name, self.input_types)

    @cached_property
    def selector(self) -> bytes:
        return keccak(text=self.canonical)[:ABI_SELECTOR_LENGTH]

    def decode(self, data: bytes) -> Tuple[Any, ...]:
        """Decode revert data (selector included) into the error's fields."""
        if data[:ABI_SELECTOR_LENGTH] != self.selector:
            raise DecodeError(
                f"Revert data does not match error {self.canonical}",
                code="INVALID_VALUE",
            )
        return codec.decode(self.input_types, data[ABI_SELECTOR_LENGTH:])

    def format(self, values: Sequence[Any]) -> str:
        rendered = ", ".join(
            f"{p.name}={v!r}" if p.name else repr(v) for p, v in zip(self.inputs, values)
        )
        return f"{self.name}({rendered})"


def selector_of(text: str) -> bytes:
    """Selector of a canonical signature text."""
    return keccak(text=text)[:ABI_SELECTOR_LENGTH]


def topic_of(text: str) -> bytes:
    """Topic hash of a canonical event signature text."""
    return keccak(text=text)
