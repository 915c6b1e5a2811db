"""
Signing capabilities.

Three variants share one interface:

- LocalSigner: holds a secret key in process and signs deterministically.
- NodeManagedSigner: asks the node to sign (``eth_signTransaction``); no key
  material ever enters the process.
- OfflineSigner: delegates digest signing to an external agent (hardware
  wallet, KMS, remote signer) through an async callback.

Every variant refuses requests with an unset nonce, chain id, gas limit or
fee model instead of filling them in.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Tuple, Type, Union

import httpx
from eth_account import Account
from eth_account.messages import encode_defunct

from ethcontract.constants import DYNAMIC_FEE_TX_TYPE
from ethcontract.errors import SignerError, SignerUnavailableError, ValidationError
from ethcontract.signing.keys import SecretKey, Signature
from ethcontract.signing.transaction import check_signable, encode_signed, signing_digest
from ethcontract.transport.base import Transport
from ethcontract.types.transaction import TransactionRequest
from ethcontract.utils.hexutil import from_data, normalize_address
from ethcontract.utils.logging import get_logger

_logger = get_logger(__name__)

UNAVAILABLE_ERRORS: Tuple[Type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    OSError,
    httpx.TransportError,
)
"""Exceptions from a signing agent that mean it could not be reached."""

DigestSigner = Callable[[bytes], Awaitable[Optional[Tuple[int, int, int]]]]
"""Async callback: 32-byte digest -> ``(r, s, recovery_id)``, or None if the agent gave no answer."""


class Signer(ABC):
    """A minimal signing interface for EVM transactions."""

    @property
    @abstractmethod
    def address(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def sign_transaction(self, request: TransactionRequest) -> bytes:
        """Return the raw signed transaction."""
        raise NotImplementedError

    @abstractmethod
    async def sign_digest(self, digest: bytes) -> Signature:
        raise NotImplementedError

    def _check_sender(self, request: TransactionRequest) -> TransactionRequest:
        check_signable(request, self.address)
        if request.from_address is None:
            return request.replace(from_address=self.address)
        if request.from_address != self.address:
            raise SignerError(
                f"Request is from {request.from_address}, signer is {self.address}",
                address=self.address,
            )
        return request


class LocalSigner(Signer):
    """
    Signs with a private key held in process.

    Example:
        >>> signer = LocalSigner.from_key(os.environ["PRIVATE_KEY"])
        >>> raw = await signer.sign_transaction(request)
    """

    def __init__(self, key: SecretKey) -> None:
        self._key = key

    @classmethod
    def from_key(cls, private_key: Union[str, bytes]) -> "LocalSigner":
        return cls(SecretKey(private_key))

    @classmethod
    def generate(cls) -> "LocalSigner":
        return cls(SecretKey.generate())

    @property
    def address(self) -> str:
        return self._key.address

    async def sign_transaction(self, request: TransactionRequest) -> bytes:
        request = self._check_sender(request)
        with self._key.unlocked() as private_key:
            signed = Account.sign_transaction(_account_fields(request), private_key)
        _logger.debug(
            "Signed transaction locally",
            extra={"address": self.address, "nonce": request.nonce, "chain_id": request.chain_id},
        )
        return bytes(signed.raw_transaction)

    async def sign_digest(self, digest: bytes) -> Signature:
        return self._key.sign_digest(digest)

    def sign_message(self, message: Union[str, bytes]) -> Signature:
        """
        EIP-191 ``personal_sign`` signature over ``message``.

        The key reaches eth-account as the PrivateKey from ``unlocked()``, so
        no copy beyond that one is made.
        """
        signable = encode_defunct(text=message) if isinstance(message, str) else encode_defunct(primitive=message)
        with self._key.unlocked() as private_key:
            signed = Account.sign_message(signable, private_key=private_key)
        return Signature(r=signed.r, s=signed.s, recovery_id=signed.v - 27)

    def close(self) -> None:
        """Wipe the key. The signer is unusable afterwards."""
        self._key.close()

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address!r})"


def _account_fields(request: TransactionRequest) -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "nonce": request.nonce,
        "gas": request.gas,
        "value": request.value,
        "data": request.data,
        "chainId": request.chain_id,
    }
    if request.to is not None:
        fields["to"] = request.to
    if request.is_dynamic_fee:
        fields["type"] = DYNAMIC_FEE_TX_TYPE
        fields["maxFeePerGas"] = request.max_fee_per_gas
        fields["maxPriorityFeePerGas"] = request.max_priority_fee_per_gas
        fields["accessList"] = []
    else:
        fields["gasPrice"] = request.gas_price
    return fields


class NodeManagedSigner(Signer):
    """
    Lets the node sign with an account it manages.

    Only transactions can be signed this way; raw digest signing is not
    exposed by the node API and raises SignerError(code="UNSUPPORTED").
    """

    def __init__(self, address: str, transport: Transport) -> None:
        self._address = normalize_address(address)
        self._transport = transport

    @property
    def address(self) -> str:
        return self._address

    async def sign_transaction(self, request: TransactionRequest) -> bytes:
        request = self._check_sender(request)
        result = await self._transport.send("eth_signTransaction", [request.to_rpc()])
        raw = _raw_from_node(result)
        _logger.debug(
            "Signed transaction via node",
            extra={"address": self.address, "nonce": request.nonce},
        )
        return raw

    async def sign_digest(self, digest: bytes) -> Signature:
        raise SignerError(
            "Node-managed accounts cannot sign raw digests",
            code="UNSUPPORTED",
            address=self.address,
        )

    def __repr__(self) -> str:
        return f"NodeManagedSigner(address={self.address!r})"


def _raw_from_node(result: Any) -> bytes:
    # geth returns {"raw": ..., "tx": {...}}; some nodes return the hex string
    if isinstance(result, Mapping):
        result = result.get("raw")
    if not isinstance(result, str):
        raise SignerError("Node returned no signed transaction")
    try:
        return from_data(result)
    except ValidationError as e:
        raise SignerError("Node returned malformed signed transaction") from e


class OfflineSigner(Signer):
    """
    Delegates signing to an external agent.

    The callback receives the 32-byte digest and returns ``(r, s,
    recovery_id)``. Exceptions listed in ``unavailable_errors`` (connection
    failures, timeouts and httpx transport errors by default) and empty
    answers raise SignerUnavailableError. A reply of the wrong shape raises
    SignerError(code="MALFORMED_SIGNATURE"). Nothing is retried here; the
    caller decides.
    """

    def __init__(
        self,
        address: str,
        sign: DigestSigner,
        unavailable_errors: Sequence[Type[BaseException]] = UNAVAILABLE_ERRORS,
    ) -> None:
        self._address = normalize_address(address)
        self._sign = sign
        self._unavailable_errors = tuple(unavailable_errors)

    @property
    def address(self) -> str:
        return self._address

    async def sign_transaction(self, request: TransactionRequest) -> bytes:
        request = self._check_sender(request)
        signature = await self.sign_digest(signing_digest(request))
        return encode_signed(request, signature)

    async def sign_digest(self, digest: bytes) -> Signature:
        try:
            result = await self._sign(digest)
        except self._unavailable_errors as e:
            _logger.warning(
                "Offline signer unavailable",
                extra={"address": self.address, "error": type(e).__name__},
            )
            raise SignerUnavailableError(
                f"Signing agent unavailable: {type(e).__name__}",
                address=self.address,
            ) from e

        if result is None:
            raise SignerUnavailableError("Signing agent returned no signature", address=self.address)

        signature = Signature(*self._check_reply(result))
        if signature.recover_address(digest) != self.address:
            raise SignerError("Signing agent signed with a different key", address=self.address)
        return signature

    def _check_reply(self, result: Any) -> Tuple[int, int, int]:
        if (
            not isinstance(result, (tuple, list))
            or len(result) != 3
            or not all(isinstance(part, int) and not isinstance(part, bool) for part in result)
        ):
            _logger.warning(
                "Offline signer returned a malformed reply",
                extra={"address": self.address, "reply_type": type(result).__name__},
            )
            raise SignerError(
                "Signing agent returned a malformed signature, expected (r, s, recovery_id)",
                code="MALFORMED_SIGNATURE",
                address=self.address,
            )
        r, s, recovery_id = result
        return r, s, recovery_id

    def __repr__(self) -> str:
        return f"OfflineSigner(address={self.address!r})"
