"""
Event log types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ethcontract.utils.hexutil import from_data, from_quantity, normalize_address, to_data, to_quantity

BlockTag = Union[int, str]


def block_param(block: BlockTag) -> str:
    """Render a block number or tag (``latest``, ``pending``...) for JSON-RPC."""
    if isinstance(block, int) and not isinstance(block, bool):
        return to_quantity(block)
    return block


@dataclass(frozen=True)
class Log:
    """A log entry as returned by ``eth_getLogs`` or a receipt."""

    address: str
    topics: Tuple[bytes, ...]
    data: bytes
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    transaction_hash: Optional[str] = None
    transaction_index: Optional[int] = None
    log_index: Optional[int] = None
    removed: bool = False

    @classmethod
    def from_rpc(cls, raw: Mapping[str, Any]) -> "Log":
        def quantity(key: str) -> Optional[int]:
            value = raw.get(key)
            return from_quantity(value) if value is not None else None

        return cls(
            address=normalize_address(raw["address"]),
            topics=tuple(from_data(t) for t in raw.get("topics", [])),
            data=from_data(raw.get("data", "0x")),
            block_number=quantity("blockNumber"),
            block_hash=raw.get("blockHash"),
            transaction_hash=raw.get("transactionHash"),
            transaction_index=quantity("transactionIndex"),
            log_index=quantity("logIndex"),
            removed=bool(raw.get("removed", False)),
        )


@dataclass(frozen=True)
class IndexedHash:
    """
    An indexed parameter of dynamic type.

    Only the keccak-256 hash of the value is stored in the topic; the value
    itself cannot be recovered from the log.
    """

    hash: bytes

    def hex(self) -> str:
        return to_data(self.hash)

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True)
class DecodedEvent:
    """
    A decoded log.

    ``fields`` preserves the event's declaration order, interleaving indexed
    and non-indexed params exactly as declared.
    """

    name: str
    fields: Dict[str, Any]
    values: Tuple[Any, ...]
    log: Log

    def __getitem__(self, key: Union[str, int]) -> Any:
        if isinstance(key, int):
            return self.values[key]
        return self.fields[key]


@dataclass
class LogFilter:
    """
    An ``eth_getLogs`` filter.

    ``topics[0]`` is the event topic (absent for anonymous events); later
    slots hold indexed-parameter encodings, with None as a wildcard.
    """

    addresses: List[str] = field(default_factory=list)
    topics: List[Optional[bytes]] = field(default_factory=list)
    from_block: Optional[BlockTag] = None
    to_block: Optional[BlockTag] = None

    def with_range(self, from_block: Optional[BlockTag], to_block: Optional[BlockTag]) -> "LogFilter":
        return LogFilter(list(self.addresses), list(self.topics), from_block, to_block)

    def to_rpc(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if len(self.addresses) == 1:
            params["address"] = self.addresses[0]
        elif self.addresses:
            params["address"] = list(self.addresses)
        params["topics"] = [to_data(t) if t is not None else None for t in self.topics]
        if self.from_block is not None:
            params["fromBlock"] = block_param(self.from_block)
        if self.to_block is not None:
            params["toBlock"] = block_param(self.to_block)
        return params
