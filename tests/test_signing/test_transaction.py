"""
Tests for transaction serialization.

Raw signed transactions are compared byte-for-byte with eth-account, which
signs with the same deterministic nonce.
"""

import pytest
from eth_account import Account
from eth_utils import keccak

from ethcontract.errors import SignerError, ValidationError
from ethcontract.signing.keys import SecretKey
from ethcontract.signing.transaction import (
    check_signable,
    encode_signed,
    recovery_id_from_v,
    signing_digest,
    transaction_hash,
    v_from_recovery_id,
)
from ethcontract.types.transaction import TransactionRequest

from tests.conftest import OTHER_ADDRESS, TEST_PRIVATE_KEY


def legacy_request(**overrides) -> TransactionRequest:
    fields = dict(
        to=OTHER_ADDRESS,
        value=10**15,
        data=b"\x12\x34",
        gas=21_000,
        gas_price=2 * 10**9,
        nonce=7,
        chain_id=8453,
    )
    fields.update(overrides)
    return TransactionRequest(**fields)


def dynamic_request(**overrides) -> TransactionRequest:
    fields = dict(
        to=OTHER_ADDRESS,
        value=0,
        data=bytes.fromhex("a9059cbb") + bytes(64),
        gas=60_000,
        max_fee_per_gas=30 * 10**9,
        max_priority_fee_per_gas=10**9,
        nonce=0,
        chain_id=84532,
    )
    fields.update(overrides)
    return TransactionRequest(**fields)


def sign(request: TransactionRequest) -> bytes:
    key = SecretKey(TEST_PRIVATE_KEY)
    return encode_signed(request, key.sign_digest(signing_digest(request)))


class TestEip155:
    """Tests for the v value of legacy transactions."""

    @pytest.mark.parametrize("chain_id", [1, 8453, 84532, 2**31])
    @pytest.mark.parametrize("recovery_id", [0, 1])
    def test_round_trip(self, chain_id, recovery_id) -> None:
        v = v_from_recovery_id(recovery_id, chain_id)
        assert v == recovery_id + chain_id * 2 + 35
        assert recovery_id_from_v(v, chain_id) == recovery_id

    def test_v_for_other_chain_rejected(self) -> None:
        with pytest.raises(ValidationError):
            recovery_id_from_v(v_from_recovery_id(0, 1), 5)


class TestSignedEncoding:
    """Byte-for-byte comparison with eth-account."""

    def test_legacy_matches_eth_account(self) -> None:
        request = legacy_request()
        expected = Account.sign_transaction(
            {
                "nonce": 7,
                "gasPrice": 2 * 10**9,
                "gas": 21_000,
                "to": OTHER_ADDRESS,
                "value": 10**15,
                "data": "0x1234",
                "chainId": 8453,
            },
            TEST_PRIVATE_KEY,
        )
        assert sign(request) == bytes(expected.raw_transaction)

    def test_dynamic_fee_matches_eth_account(self) -> None:
        request = dynamic_request()
        expected = Account.sign_transaction(
            {
                "type": 2,
                "chainId": 84532,
                "nonce": 0,
                "maxPriorityFeePerGas": 10**9,
                "maxFeePerGas": 30 * 10**9,
                "gas": 60_000,
                "to": OTHER_ADDRESS,
                "value": 0,
                "data": "0x" + request.data.hex(),
                "accessList": [],
            },
            TEST_PRIVATE_KEY,
        )
        raw = sign(request)

        assert raw[0] == 0x02
        assert raw == bytes(expected.raw_transaction)
        assert transaction_hash(raw) == "0x" + keccak(raw).hex()

    def test_recovered_sender(self) -> None:
        raw = sign(legacy_request())
        assert Account.recover_transaction(raw) == Account.from_key(TEST_PRIVATE_KEY).address


class TestCheckSignable:
    """Tests for the fail-fast field checks."""

    @pytest.mark.parametrize(
        "field",
        ["nonce", "chain_id", "gas", "gas_price"],
    )
    def test_missing_legacy_field(self, field) -> None:
        with pytest.raises(SignerError) as exc_info:
            check_signable(legacy_request(**{field: None}))
        assert exc_info.value.code == "MISSING_FIELD"
        assert exc_info.value.details["field"] == field

    def test_missing_priority_fee(self) -> None:
        with pytest.raises(SignerError) as exc_info:
            check_signable(dynamic_request(max_priority_fee_per_gas=None))
        assert exc_info.value.details["field"] == "max_priority_fee_per_gas"

    def test_both_fee_models_rejected(self) -> None:
        with pytest.raises(ValidationError):
            check_signable(legacy_request(max_fee_per_gas=10**9, max_priority_fee_per_gas=1))

    def test_contract_creation_has_empty_to(self) -> None:
        raw = sign(legacy_request(to=None, data=b"\x60\x80"))
        assert Account.recover_transaction(raw) == Account.from_key(TEST_PRIVATE_KEY).address
