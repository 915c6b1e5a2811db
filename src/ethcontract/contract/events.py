"""
Event log filters and decoding.

Topic layout of a log emitted by ``event Name(...)``:

- topic 0: keccak-256 of the canonical signature (absent for anonymous events)
- topics 1..n: indexed params, in declaration order. Value types are stored
  as their 32-byte ABI word; strings, bytes, arrays and tuples as the
  keccak-256 hash of their encoding.

Non-indexed params are ABI-encoded together in the log's ``data``.
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Union

from ethcontract.abi import codec
from ethcontract.abi.signatures import EventSignature
from ethcontract.constants import DEFAULT_LOG_PAGE_SIZE, DEFAULT_POLL_INTERVAL_SECONDS
from ethcontract.errors import DecodeError, ValidationError
from ethcontract.transport.base import Transport
from ethcontract.types.log import BlockTag, DecodedEvent, IndexedHash, Log, LogFilter
from ethcontract.utils.hexutil import from_quantity, normalize_address
from ethcontract.utils.logging import get_logger

_logger = get_logger(__name__)


def build_filter(
    event: EventSignature,
    addresses: Sequence[str] = (),
    indexed_values: Sequence[Any] = (),
    from_block: Optional[BlockTag] = None,
    to_block: Optional[BlockTag] = None,
) -> LogFilter:
    """
    Build a log filter for ``event``.

    Args:
        event: Event to match.
        addresses: Emitting contracts (empty matches any address).
        indexed_values: Values for the indexed params, in order. None is a
            wildcard; positions left out are wildcards too.
        from_block: First block (inclusive).
        to_block: Last block (inclusive).

    Raises:
        ValidationError: If more values than indexed params are given, or a
            bound value follows a wildcard.
        EncodeError: If a value does not fit its param type.
    """
    indexed = event.indexed_params
    if len(indexed_values) > len(indexed):
        raise ValidationError(
            f"{event.name} has {len(indexed)} indexed params, got {len(indexed_values)} values"
        )

    topics: List[Optional[bytes]] = [] if event.anonymous else [event.topic]
    wildcard_seen = False
    for position, param in enumerate(indexed):
        value = indexed_values[position] if position < len(indexed_values) else None
        if value is None:
            wildcard_seen = True
            topics.append(None)
            continue
        if wildcard_seen:
            raise ValidationError(
                f"Indexed param {param.name or position} is bound after a wildcard",
                details={"event": event.canonical, "position": position},
            )
        if isinstance(value, IndexedHash):
            topics.append(value.hash)
        else:
            topics.append(codec.encode_topic(param.type, value))

    return LogFilter(
        addresses=[normalize_address(a) for a in addresses],
        topics=topics,
        from_block=from_block,
        to_block=to_block,
    )


def decode_log(event: EventSignature, log: Union[Log, Mapping[str, Any]]) -> DecodedEvent:
    """
    Decode a log emitted by ``event``.

    Indexed params of dynamic type come back as IndexedHash.

    Raises:
        DecodeError: If topic 0 does not match, the topic count is wrong, or
            the data does not decode.
    """
    if not isinstance(log, Log):
        log = Log.from_rpc(log)

    indexed = event.indexed_params
    offset = 0 if event.anonymous else 1
    if len(log.topics) != len(indexed) + offset:
        raise DecodeError(
            f"{event.canonical} expects {len(indexed) + offset} topics, log has {len(log.topics)}",
            code="INVALID_VALUE",
        )
    if not event.anonymous and log.topics[0] != event.topic:
        raise DecodeError(
            f"Log topic does not match {event.canonical}",
            code="INVALID_VALUE",
        )

    data_values = iter(codec.decode([p.type for p in event.data_params], log.data))
    topics = iter(log.topics[offset:])

    fields: Dict[str, Any] = {}
    values: List[Any] = []
    for position, param in enumerate(event.params):
        if param.indexed:
            topic = next(topics)
            if codec.is_value_type(param.type):
                value = codec.decode_topic(param.type, topic)
            else:
                value = IndexedHash(topic)
        else:
            value = next(data_values)
        values.append(value)
        fields[param.name or f"arg{position}"] = value

    return DecodedEvent(name=event.name, fields=fields, values=tuple(values), log=log)


class EventStream:
    """
    Queries and follows the logs of one event.

    Example:
        ```python
        transfers = EventStream(transport, token_abi.event("Transfer"))
        flt = build_filter(transfers.event, [token], [owner], from_block=19_000_000)
        async for transfer in transfers.stream(flt):
            print(transfer["to"], transfer["value"])
        ```
    """

    def __init__(
        self,
        transport: Transport,
        event: EventSignature,
        *,
        page_size: int = DEFAULT_LOG_PAGE_SIZE,
    ) -> None:
        if page_size < 1:
            raise ValidationError("page_size must be positive")
        self._transport = transport
        self.event = event
        self._page_size = page_size

    def filter(
        self,
        addresses: Sequence[str] = (),
        indexed_values: Sequence[Any] = (),
        from_block: Optional[BlockTag] = None,
        to_block: Optional[BlockTag] = None,
    ) -> LogFilter:
        return build_filter(self.event, addresses, indexed_values, from_block, to_block)

    async def query(self, log_filter: LogFilter) -> List[DecodedEvent]:
        """Run ``eth_getLogs`` and decode every returned log."""
        raw_logs = await self._transport.send("eth_getLogs", [log_filter.to_rpc()])
        events = []
        for raw in raw_logs or []:
            log = Log.from_rpc(raw)
            if log.removed:
                continue
            events.append(decode_log(self.event, log))
        _logger.debug(
            "Fetched logs",
            extra={"event": self.event.name, "count": len(events)},
        )
        return events

    async def stream(
        self,
        log_filter: LogFilter,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        confirmations: int = 0,
    ) -> AsyncIterator[DecodedEvent]:
        """
        Yield matching events block range by block range, then keep polling
        for new blocks.

        Ranges end ``confirmations`` blocks behind the head. The stream stops
        after ``log_filter.to_block`` when that is a block number; otherwise
        it runs until the consumer stops iterating.
        """
        head = await self._block_number()
        next_block = _resolve_block(log_filter.from_block, head)
        last_block = (
            log_filter.to_block
            if isinstance(log_filter.to_block, int) and not isinstance(log_filter.to_block, bool)
            else None
        )

        while last_block is None or next_block <= last_block:
            safe_head = head - confirmations
            if next_block <= safe_head:
                end = min(safe_head, next_block + self._page_size - 1)
                if last_block is not None:
                    end = min(end, last_block)
                for event in await self.query(log_filter.with_range(next_block, end)):
                    yield event
                next_block = end + 1
                continue
            await asyncio.sleep(poll_interval)
            head = await self._block_number()

    async def _block_number(self) -> int:
        return from_quantity(await self._transport.send("eth_blockNumber", []))


def _resolve_block(block: Optional[BlockTag], head: int) -> int:
    if block is None or block in ("latest", "pending", "safe", "finalized"):
        return head
    if block == "earliest":
        return 0
    if isinstance(block, int):
        return block
    return from_quantity(block)
