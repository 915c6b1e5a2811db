"""
Tests for JSON-RPC hex encoding helpers.
"""

import pytest

from ethcontract.errors import ValidationError
from ethcontract.utils.hexutil import (
    address_to_bytes,
    from_data,
    from_quantity,
    is_quantity,
    normalize_address,
    to_data,
    to_quantity,
)

from tests.conftest import OTHER_ADDRESS


class TestQuantities:
    """Tests for quantity encoding."""

    @pytest.mark.parametrize("value,text", [(0, "0x0"), (1, "0x1"), (1024, "0x400"), (2**256 - 1, "0x" + "f" * 64)])
    def test_round_trip(self, value, text) -> None:
        assert to_quantity(value) == text
        assert from_quantity(text) == value
        assert is_quantity(text)

    @pytest.mark.parametrize("value", [-1, True, 1.5, "0x1"])
    def test_to_quantity_rejects(self, value) -> None:
        with pytest.raises(ValidationError):
            to_quantity(value)

    def test_from_quantity_tolerates_leading_zeros(self) -> None:
        assert from_quantity("0x0010") == 16
        assert not is_quantity("0x0010")

    def test_from_quantity_passes_ints_through(self) -> None:
        assert from_quantity(42) == 42

    @pytest.mark.parametrize("value", ["0x", "10", "0xzz", None, False])
    def test_from_quantity_rejects(self, value) -> None:
        with pytest.raises(ValidationError):
            from_quantity(value)


class TestData:
    """Tests for data encoding."""

    def test_round_trip(self) -> None:
        assert to_data(b"\x00\xff") == "0x00ff"
        assert from_data("0x00FF") == b"\x00\xff"
        assert from_data("0x") == b""

    @pytest.mark.parametrize("value", ["0x0", "00ff", "0xgg", 5])
    def test_rejects(self, value) -> None:
        with pytest.raises(ValidationError):
            from_data(value)


class TestAddresses:
    """Tests for address normalization."""

    def test_checksums_any_case(self) -> None:
        assert normalize_address(OTHER_ADDRESS.lower()) == OTHER_ADDRESS
        assert normalize_address(OTHER_ADDRESS.upper().replace("0X", "0x")) == OTHER_ADDRESS

    def test_accepts_raw_bytes(self) -> None:
        raw = address_to_bytes(OTHER_ADDRESS)
        assert len(raw) == 20
        assert normalize_address(raw) == OTHER_ADDRESS

    @pytest.mark.parametrize("value", ["0x1234", "not an address", b"\x00" * 19, 7])
    def test_rejects(self, value) -> None:
        with pytest.raises(ValidationError):
            normalize_address(value)
