"""
Tests for SecretKey and Signature.
"""

from unittest.mock import patch

import pytest
from eth_account import Account
from eth_keys import keys
from eth_utils import keccak

from ethcontract.errors import SignerError, ValidationError
from ethcontract.signing.keys import SECP256K1_N, SecretKey, Signature

from tests.conftest import TEST_ADDRESS, TEST_PRIVATE_KEY


class TestSecretKey:
    """Tests for SecretKey."""

    def test_address_matches_eth_account(self) -> None:
        key = SecretKey(TEST_PRIVATE_KEY)
        assert key.address == TEST_ADDRESS

    def test_accepts_bytes_and_unprefixed_hex(self) -> None:
        raw = bytes.fromhex(TEST_PRIVATE_KEY[2:])
        assert SecretKey(raw).address == TEST_ADDRESS
        assert SecretKey(TEST_PRIVATE_KEY[2:]).address == TEST_ADDRESS

    @pytest.mark.parametrize(
        "bad_key",
        ["0x1234", "0x" + "zz" * 32, "0x" + "00" * 32, SECP256K1_N.to_bytes(32, "big"), 12345],
    )
    def test_invalid_keys_rejected(self, bad_key) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SecretKey(bad_key)
        assert TEST_PRIVATE_KEY[2:] not in str(exc_info.value)

    def test_generate(self) -> None:
        key = SecretKey.generate()
        assert key.address.startswith("0x") and len(key.address) == 42

    def test_close_wipes_buffer(self) -> None:
        key = SecretKey(TEST_PRIVATE_KEY)
        key.close()

        assert key.closed
        assert bytes(key._key) == bytes(32)
        with pytest.raises(SignerError):
            key.sign_digest(bytes(32))

    def test_each_unlock_makes_one_key_copy(self) -> None:
        key = SecretKey(TEST_PRIVATE_KEY)

        with patch.object(keys, "PrivateKey", wraps=keys.PrivateKey) as private_key:
            key.sign_digest(bytes(32))

        assert private_key.call_count == 1
        [copy] = private_key.call_args.args
        assert isinstance(copy, bytes)
        key.close()
        assert bytes(key._key) == bytes(32)

    def test_context_manager_closes(self) -> None:
        with SecretKey(TEST_PRIVATE_KEY) as key:
            assert not key.closed
        assert key.closed

    def test_repr_hides_key(self) -> None:
        key = SecretKey(TEST_PRIVATE_KEY)
        assert TEST_PRIVATE_KEY[2:] not in repr(key)
        assert TEST_ADDRESS in repr(key)

    def test_sign_digest_recovers_to_address(self) -> None:
        digest = keccak(b"payload")
        signature = SecretKey(TEST_PRIVATE_KEY).sign_digest(digest)

        assert signature.recovery_id in (0, 1)
        assert signature.recover_address(digest) == TEST_ADDRESS

    def test_sign_digest_is_deterministic(self) -> None:
        key = SecretKey(TEST_PRIVATE_KEY)
        digest = keccak(b"payload")
        assert key.sign_digest(digest) == key.sign_digest(digest)

    def test_sign_digest_matches_eth_account(self) -> None:
        digest = keccak(b"payload")
        ours = SecretKey(TEST_PRIVATE_KEY).sign_digest(digest)
        theirs = Account.unsafe_sign_hash(digest, TEST_PRIVATE_KEY)
        assert (ours.r, ours.s, ours.recovery_id + 27) == (theirs.r, theirs.s, theirs.v)

    def test_digest_length_checked(self) -> None:
        with pytest.raises(ValidationError):
            SecretKey(TEST_PRIVATE_KEY).sign_digest(b"short")


class TestSignature:
    """Tests for Signature."""

    def test_to_bytes_uses_27_offset(self) -> None:
        signature = Signature(r=1, s=2, recovery_id=1)
        raw = signature.to_bytes()

        assert len(raw) == 65
        assert raw[-1] == 28

    @pytest.mark.parametrize(
        "r,s,recovery_id",
        [(0, 1, 0), (1, 0, 0), (SECP256K1_N, 1, 0), (1, 1, 2), (1, 1, 27)],
    )
    def test_invalid_components(self, r, s, recovery_id) -> None:
        with pytest.raises(SignerError):
            Signature(r=r, s=s, recovery_id=recovery_id)
