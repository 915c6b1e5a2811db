"""
Contract ABI documents.

Parses the JSON ABI emitted by solc (a list of entries, or a build artifact
with an ``abi`` key) into function, event and error signatures.

Example:
    ```python
    abi = ContractAbi.from_json(artifact)
    transfer = abi.function("transfer")
    data = transfer.encode_call([recipient, 10**18])
    ```
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ethcontract.abi.revert import decode_revert_reason
from ethcontract.abi.signatures import ErrorSignature, EventSignature, FunctionSignature, Param
from ethcontract.abi.types import parse_type
from ethcontract.constants import ABI_SELECTOR_LENGTH
from ethcontract.errors import AbiParseError, DecodeError, ValidationError
from ethcontract.utils.logging import get_logger

_logger = get_logger(__name__)

_KNOWN_KINDS = frozenset({"function", "event", "error", "constructor", "fallback", "receive"})


# ============================================================================
# ABI JSON entry models
# ============================================================================

class AbiParam(BaseModel):
    """One input/output/event parameter as it appears in ABI JSON."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    type: str
    indexed: bool = False
    components: Optional[List["AbiParam"]] = None

    def to_param(self) -> Param:
        components = None
        if self.components is not None:
            components = [c.model_dump() for c in self.components]
        return Param(name=self.name, type=parse_type(self.type, components), indexed=self.indexed)


class AbiEntry(BaseModel):
    """One entry of an ABI JSON document."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str = "function"
    name: str = ""
    inputs: List[AbiParam] = Field(default_factory=list)
    outputs: List[AbiParam] = Field(default_factory=list)
    state_mutability: Optional[str] = Field(default=None, alias="stateMutability")
    anonymous: bool = False
    # Pre-0.5 compilers
    constant: Optional[bool] = None
    payable: Optional[bool] = None

    @property
    def mutability(self) -> str:
        if self.state_mutability:
            return self.state_mutability
        if self.constant:
            return "view"
        if self.payable:
            return "payable"
        return "nonpayable"

    def to_function(self) -> FunctionSignature:
        return FunctionSignature(
            name=self.name,
            inputs=tuple(p.to_param() for p in self.inputs),
            outputs=tuple(p.to_param() for p in self.outputs),
            state_mutability=self.mutability,
        )

    def to_event(self) -> EventSignature:
        return EventSignature(
            name=self.name,
            params=tuple(p.to_param() for p in self.inputs),
            anonymous=self.anonymous,
        )

    def to_error(self) -> ErrorSignature:
        return ErrorSignature(name=self.name, inputs=tuple(p.to_param() for p in self.inputs))


AbiSource = Union[str, bytes, Sequence[Mapping[str, Any]], Mapping[str, Any]]


# ============================================================================
# ContractAbi
# ============================================================================

class ContractAbi:
    """
    Signatures declared by one contract.

    Overloaded functions share a name; look them up by full canonical
    signature (``"safeTransferFrom(address,address,uint256)"``) when the
    bare name is ambiguous.
    """

    def __init__(self, entries: Sequence[AbiEntry]) -> None:
        self._functions: Dict[str, List[FunctionSignature]] = {}
        self._events: Dict[str, List[EventSignature]] = {}
        self._errors: Dict[bytes, ErrorSignature] = {}
        self.constructor: Optional[FunctionSignature] = None
        self.has_fallback = False
        self.has_receive = False
        self.fallback_payable = False

        for entry in entries:
            if entry.type not in _KNOWN_KINDS:
                _logger.debug("Ignoring unknown ABI entry", extra={"kind": entry.type})
                continue
            if entry.type == "function":
                self._functions.setdefault(entry.name, []).append(entry.to_function())
            elif entry.type == "event":
                self._events.setdefault(entry.name, []).append(entry.to_event())
            elif entry.type == "error":
                error = entry.to_error()
                self._errors[error.selector] = error
            elif entry.type == "constructor":
                self.constructor = entry.to_function()
            elif entry.type == "fallback":
                self.has_fallback = True
                self.fallback_payable = entry.mutability == "payable"
            elif entry.type == "receive":
                self.has_receive = True

    @classmethod
    def from_json(cls, source: AbiSource) -> "ContractAbi":
        """
        Load an ABI from JSON text, a list of entries, or an artifact dict.

        Raises:
            AbiParseError: If the document or any type in it is malformed.
        """
        document: Any = source
        if isinstance(source, (str, bytes)):
            try:
                document = json.loads(source)
            except ValueError as e:
                raise AbiParseError("<json>", reason=str(e)) from e
        if isinstance(document, Mapping):
            if "abi" not in document:
                raise AbiParseError("<artifact>", reason="artifact has no 'abi' key")
            document = document["abi"]
        if not isinstance(document, list):
            raise AbiParseError("<abi>", reason="ABI must be a list of entries")

        entries = []
        for index, raw in enumerate(document):
            try:
                entries.append(AbiEntry.model_validate(raw))
            except PydanticValidationError as e:
                raise AbiParseError(f"<entry {index}>", reason=str(e)) from e
        return cls(entries)

    # --- Functions ----------------------------------------------------------

    @property
    def functions(self) -> List[FunctionSignature]:
        return [f for overloads in self._functions.values() for f in overloads]

    def function(self, name_or_signature: str) -> FunctionSignature:
        """
        Resolve a function by name or canonical signature.

        Raises:
            ValidationError: If no function matches, or a bare name matches
                several overloads.
        """
        return self._resolve(self._functions, name_or_signature, "function")

    def function_by_selector(self, selector: bytes) -> Optional[FunctionSignature]:
        for function in self.functions:
            if function.selector == selector[:ABI_SELECTOR_LENGTH]:
                return function
        return None

    def has_function(self, name_or_signature: str) -> bool:
        try:
            self.function(name_or_signature)
        except ValidationError:
            return False
        return True

    # --- Events -------------------------------------------------------------

    @property
    def events(self) -> List[EventSignature]:
        return [e for overloads in self._events.values() for e in overloads]

    def event(self, name_or_signature: str) -> EventSignature:
        """Resolve an event by name or canonical signature."""
        return self._resolve(self._events, name_or_signature, "event")

    # --- Errors -------------------------------------------------------------

    @property
    def errors(self) -> List[ErrorSignature]:
        return list(self._errors.values())

    def decode_error(self, data: Optional[bytes]) -> Optional[str]:
        """
        Render revert data as a human-readable reason.

        Tries the built-in ``Error(string)`` / ``Panic(uint256)`` payloads
        first, then the custom errors this ABI declares. Returns None when
        nothing matches.
        """
        reason = decode_revert_reason(data)
        if reason is not None or not data:
            return reason
        error = self._errors.get(bytes(data[:ABI_SELECTOR_LENGTH]))
        if error is None:
            return None
        try:
            return error.format(error.decode(bytes(data)))
        except DecodeError:
            return error.name

    def signatures(self) -> List[str]:
        """Canonical signatures of every function, in declaration order."""
        return [f.canonical for f in self.functions]

    def _resolve(self, table: Dict[str, List[Any]], key: str, kind: str) -> Any:
        if "(" in key:
            name = key.split("(", 1)[0]
            for candidate in table.get(name, []):
                if candidate.canonical == key.replace(" ", ""):
                    return candidate
            raise ValidationError(f"Unknown {kind} signature: {key}")

        candidates = table.get(key, [])
        if not candidates:
            raise ValidationError(f"Unknown {kind}: {key}")
        if len(candidates) > 1:
            options = ", ".join(c.canonical for c in candidates)
            raise ValidationError(
                f"Ambiguous {kind} {key!r}; use one of: {options}",
                details={"overloads": [c.canonical for c in candidates]},
            )
        return candidates[0]

    def __repr__(self) -> str:
        return (
            f"ContractAbi(functions={len(self.functions)}, "
            f"events={len(self.events)}, errors={len(self._errors)})"
        )
