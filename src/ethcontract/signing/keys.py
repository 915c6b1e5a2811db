"""
secp256k1 key material and signatures.

SecretKey keeps the private key in a mutable buffer that is zeroed when the
key is closed or garbage collected. The raw key is only materialized as an
``eth_keys`` PrivateKey inside ``unlocked()`` blocks.

Only that buffer can be wiped. A hex ``str`` passed to the constructor and
the immutable ``bytes`` copy held by each unlocked PrivateKey stay in memory
until the allocator reuses them. Each ``unlocked()`` block makes exactly one
such copy, which is dropped when the block exits.
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Union

from eth_keys import keys

from ethcontract.errors import SignerError, ValidationError

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
PRIVATE_KEY_LENGTH = 32


@dataclass(frozen=True)
class Signature:
    """
    A recoverable secp256k1 signature.

    Attributes:
        r: Signature r value.
        s: Signature s value.
        recovery_id: 0 or 1 (the parity of the ephemeral point's y).
    """

    r: int
    s: int
    recovery_id: int

    def __post_init__(self) -> None:
        if not 0 < self.r < SECP256K1_N or not 0 < self.s < SECP256K1_N:
            raise SignerError("Signature r/s out of range")
        if self.recovery_id not in (0, 1):
            raise SignerError(f"Invalid recovery id: {self.recovery_id}")

    def to_bytes(self) -> bytes:
        """65-byte ``r || s || v`` with ``v = 27 + recovery_id``."""
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([27 + self.recovery_id])

    def recover_address(self, digest: bytes) -> str:
        """Checksummed address of the key that produced this signature over ``digest``."""
        sig = keys.Signature(vrs=(self.recovery_id, self.r, self.s))
        return sig.recover_public_key_from_msg_hash(digest).to_checksum_address()


def _parse_key(key: Union[bytes, bytearray, str]) -> bytearray:
    if isinstance(key, str):
        text = key[2:] if key.startswith(("0x", "0X")) else key
        try:
            raw = bytearray.fromhex(text)
        except ValueError:
            raise ValidationError("Invalid private key format (key not shown for security)") from None
    elif isinstance(key, (bytes, bytearray)):
        raw = bytearray(key)
    else:
        raise ValidationError("Private key must be hex str or bytes")

    if len(raw) != PRIVATE_KEY_LENGTH or not 0 < int.from_bytes(raw, "big") < SECP256K1_N:
        raw[:] = b"\x00" * len(raw)
        raise ValidationError("Invalid private key (key not shown for security)")
    return raw


class SecretKey:
    """
    Owned secp256k1 private key.

    The buffer is wiped by ``close()``, on leaving a ``with`` block, or when
    the object is garbage collected. After wiping, every operation raises
    SignerError.

    Example:
        >>> with SecretKey.generate() as key:
        ...     print(key.address)
    """

    def __init__(self, key: Union[bytes, bytearray, str]) -> None:
        self._key = _parse_key(key)
        self._closed = False
        with self.unlocked() as private_key:
            self._address = private_key.public_key.to_checksum_address()

    @classmethod
    def generate(cls) -> "SecretKey":
        while True:
            candidate = secrets.token_bytes(PRIVATE_KEY_LENGTH)
            if 0 < int.from_bytes(candidate, "big") < SECP256K1_N:
                return cls(candidate)

    @property
    def address(self) -> str:
        return self._address

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def unlocked(self) -> Iterator[keys.PrivateKey]:
        """
        Yield the key as an ``eth_keys`` PrivateKey for the duration of the block.

        The PrivateKey wraps an immutable ``bytes`` copy of the buffer, which
        ``close()`` cannot zero. Do not keep a reference past the block.
        """
        if self._closed:
            raise SignerError("Secret key has been wiped", address=getattr(self, "_address", None))
        yield keys.PrivateKey(bytes(self._key))

    def sign_digest(self, digest: bytes) -> Signature:
        """Deterministic (RFC 6979) signature over a 32-byte digest."""
        if len(digest) != 32:
            raise ValidationError(f"Digest must be 32 bytes, got {len(digest)}")
        with self.unlocked() as private_key:
            sig = private_key.sign_msg_hash(digest)
        return Signature(r=sig.r, s=sig.s, recovery_id=sig.v)

    def close(self) -> None:
        """Zero the key buffer."""
        if not self._closed:
            for i in range(len(self._key)):
                self._key[i] = 0
            self._closed = True

    def __enter__(self) -> "SecretKey":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __del__(self) -> None:
        if hasattr(self, "_key"):
            self.close()

    def __repr__(self) -> str:
        state = "wiped" if self._closed else "loaded"
        return f"SecretKey(address={self._address!r}, {state})"
