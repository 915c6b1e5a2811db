"""
Tests for log filters, log decoding and EventStream.
"""

import pytest
from eth_utils import keccak

from ethcontract.abi.codec import encode, encode_topic
from ethcontract.abi.signatures import EventSignature, Param
from ethcontract.abi.types import Address, String, UInt
from ethcontract.contract.events import EventStream, build_filter, decode_log
from ethcontract.errors import DecodeError, ValidationError
from ethcontract.types.log import IndexedHash, Log

from tests.conftest import CONTRACT_ADDRESS, OTHER_ADDRESS, TEST_ADDRESS

TRANSFER = EventSignature.create(
    "Transfer",
    [
        Param.of("address", "from", indexed=True),
        Param.of("address", "to", indexed=True),
        Param.of("uint256", "value"),
    ],
)

TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


def hexed(data: bytes) -> str:
    return "0x" + data.hex()


def transfer_log(sender: str, recipient: str, value: int, block: int = 1, **extra) -> dict:
    raw = {
        "address": CONTRACT_ADDRESS.lower(),
        "topics": [
            TRANSFER_TOPIC,
            hexed(encode_topic(Address(), sender)),
            hexed(encode_topic(Address(), recipient)),
        ],
        "data": hexed(encode([UInt(256)], [value])),
        "blockNumber": hex(block),
        "transactionHash": "0x" + "11" * 32,
        "logIndex": "0x0",
    }
    raw.update(extra)
    return raw


class TestBuildFilter:
    """Tests for build_filter()."""

    def test_transfer_from_any_recipient(self) -> None:
        log_filter = build_filter(TRANSFER, [CONTRACT_ADDRESS], [TEST_ADDRESS, None], from_block=10)

        assert log_filter.to_rpc() == {
            "address": CONTRACT_ADDRESS,
            "topics": [TRANSFER_TOPIC, hexed(encode_topic(Address(), TEST_ADDRESS)), None],
            "fromBlock": "0xa",
        }

    def test_omitted_values_are_wildcards(self) -> None:
        log_filter = build_filter(TRANSFER)
        assert log_filter.topics == [TRANSFER.topic, None, None]
        assert "address" not in log_filter.to_rpc()

    def test_bound_after_wildcard_rejected(self) -> None:
        with pytest.raises(ValidationError):
            build_filter(TRANSFER, [], [None, OTHER_ADDRESS])

    def test_too_many_values(self) -> None:
        with pytest.raises(ValidationError):
            build_filter(TRANSFER, [], [TEST_ADDRESS, OTHER_ADDRESS, 5])

    def test_several_addresses_render_as_list(self) -> None:
        log_filter = build_filter(TRANSFER, [CONTRACT_ADDRESS, OTHER_ADDRESS], to_block="latest")
        params = log_filter.to_rpc()
        assert params["address"] == [CONTRACT_ADDRESS, OTHER_ADDRESS]
        assert params["toBlock"] == "latest"

    def test_dynamic_indexed_value_is_hashed(self) -> None:
        event = EventSignature.create("Named", [Param.of("string", "name", indexed=True)])

        by_value = build_filter(event, [], ["alice"])
        by_hash = build_filter(event, [], [IndexedHash(keccak(b"alice"))])

        assert by_value.topics[1] == keccak(b"alice")
        assert by_hash.topics == by_value.topics

    def test_anonymous_event_has_no_topic_zero(self) -> None:
        event = EventSignature.create("Anon", [("uint256", True)], anonymous=True)
        assert build_filter(event, [], [1]).topics == [(1).to_bytes(32, "big")]


class TestDecodeLog:
    """Tests for decode_log()."""

    def test_fields_in_declaration_order(self) -> None:
        decoded = decode_log(TRANSFER, transfer_log(TEST_ADDRESS, OTHER_ADDRESS, 1000))

        assert decoded.name == "Transfer"
        assert list(decoded.fields) == ["from", "to", "value"]
        assert decoded["from"] == TEST_ADDRESS
        assert decoded["to"] == OTHER_ADDRESS
        assert decoded[2] == 1000
        assert decoded.log.address == CONTRACT_ADDRESS
        assert decoded.log.block_number == 1

    def test_interleaved_indexed_params(self) -> None:
        event = EventSignature.create(
            "Listed",
            [
                Param.of("uint256", "price"),
                Param.of("address", "seller", indexed=True),
                Param.of("string", "title"),
                Param.of("string", "tag", indexed=True),
            ],
        )
        log = Log(
            address=CONTRACT_ADDRESS,
            topics=(event.topic, encode_topic(Address(), OTHER_ADDRESS), encode_topic(String(), "rare")),
            data=encode([UInt(256), String()], [5, "Lamp"]),
        )

        decoded = decode_log(event, log)

        assert decoded.values[:3] == (5, OTHER_ADDRESS, "Lamp")
        assert decoded["tag"] == IndexedHash(keccak(b"rare"))

    def test_unnamed_params_get_positional_names(self) -> None:
        event = EventSignature.create("E", [("uint256", False)])
        log = Log(address=CONTRACT_ADDRESS, topics=(event.topic,), data=encode([UInt(256)], [3]))
        assert decode_log(event, log).fields == {"arg0": 3}

    def test_wrong_topic_zero(self) -> None:
        raw = transfer_log(TEST_ADDRESS, OTHER_ADDRESS, 1)
        raw["topics"][0] = "0x" + "00" * 32
        with pytest.raises(DecodeError):
            decode_log(TRANSFER, raw)

    def test_wrong_topic_count(self) -> None:
        raw = transfer_log(TEST_ADDRESS, OTHER_ADDRESS, 1)
        raw["topics"] = raw["topics"][:2]
        with pytest.raises(DecodeError):
            decode_log(TRANSFER, raw)

    def test_truncated_data(self) -> None:
        raw = transfer_log(TEST_ADDRESS, OTHER_ADDRESS, 1, data="0x")
        with pytest.raises(DecodeError) as exc_info:
            decode_log(TRANSFER, raw)
        assert exc_info.value.code == "OUT_OF_BOUNDS"


class TestEventStream:
    """Tests for EventStream query() and stream()."""

    @pytest.mark.asyncio
    async def test_query_decodes_and_skips_removed(self, transport) -> None:
        transport.on(
            "eth_getLogs",
            [
                transfer_log(TEST_ADDRESS, OTHER_ADDRESS, 1),
                transfer_log(TEST_ADDRESS, OTHER_ADDRESS, 2, removed=True),
            ],
        )
        stream = EventStream(transport, TRANSFER)

        events = await stream.query(stream.filter([CONTRACT_ADDRESS], [TEST_ADDRESS]))

        assert [e["value"] for e in events] == [1]
        [params] = transport.params_of("eth_getLogs")
        assert params[0]["topics"][0] == TRANSFER_TOPIC

    @pytest.mark.asyncio
    async def test_stream_pages_block_ranges(self, transport) -> None:
        def logs_for(params):
            start = int(params[0]["fromBlock"], 16)
            end = int(params[0]["toBlock"], 16)
            return [transfer_log(TEST_ADDRESS, OTHER_ADDRESS, block, block=block) for block in range(start, end + 1)]

        transport.on("eth_blockNumber", hex(200))
        transport.on("eth_getLogs", logs_for)
        stream = EventStream(transport, TRANSFER, page_size=2)

        values = [e["value"] async for e in stream.stream(stream.filter(from_block=100, to_block=104))]

        assert values == [100, 101, 102, 103, 104]
        ranges = [(p[0]["fromBlock"], p[0]["toBlock"]) for p in transport.params_of("eth_getLogs")]
        assert ranges == [("0x64", "0x65"), ("0x66", "0x67"), ("0x68", "0x68")]

    @pytest.mark.asyncio
    async def test_stream_waits_for_confirmations(self, transport) -> None:
        transport.on("eth_blockNumber", hex(10), hex(12))
        transport.on("eth_getLogs", [])
        stream = EventStream(transport, TRANSFER)

        events = [e async for e in stream.stream(
            stream.filter(from_block=10, to_block=10), poll_interval=0.001, confirmations=2
        )]

        assert events == []
        assert len(transport.params_of("eth_blockNumber")) == 2
        assert transport.params_of("eth_getLogs")[0][0]["toBlock"] == "0xa"

    @pytest.mark.asyncio
    async def test_open_ended_stream_follows_head(self, transport) -> None:
        transport.on("eth_blockNumber", hex(5), hex(5), hex(6))
        transport.on("eth_getLogs", lambda params: [
            transfer_log(TEST_ADDRESS, OTHER_ADDRESS, int(params[0]["fromBlock"], 16))
        ])
        stream = EventStream(transport, TRANSFER)

        seen = []
        async for event in stream.stream(stream.filter(from_block=5), poll_interval=0.001):
            seen.append(event["value"])
            if len(seen) == 2:
                break

        assert seen == [5, 6]

    def test_page_size_validated(self, transport) -> None:
        with pytest.raises(ValidationError):
            EventStream(transport, TRANSFER, page_size=0)
