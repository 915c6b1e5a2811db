"""
Transaction serialization.

Two envelopes are supported:

- Legacy with EIP-155 replay protection. The signing payload is
  ``rlp([nonce, gasPrice, gas, to, value, data, chainId, 0, 0])`` and the
  signed transaction is ``rlp([nonce, gasPrice, gas, to, value, data, v, r, s])``
  with ``v = recovery_id + chain_id * 2 + 35``.
- EIP-1559 (type ``0x02``). The signing payload is
  ``0x02 || rlp([chainId, nonce, maxPriorityFeePerGas, maxFeePerGas, gas, to,
  value, data, accessList])`` and the signed transaction appends
  ``[yParity, r, s]`` with ``yParity`` the plain recovery id.

The digest that gets signed is the keccak-256 of the signing payload.
"""

from __future__ import annotations

from typing import Any, List, Optional

import rlp
from eth_utils import keccak

from ethcontract.constants import DYNAMIC_FEE_TX_TYPE, EIP155_V_OFFSET
from ethcontract.errors import SignerError, ValidationError
from ethcontract.signing.keys import Signature
from ethcontract.types.transaction import TransactionRequest
from ethcontract.utils.hexutil import address_to_bytes, to_data


def v_from_recovery_id(recovery_id: int, chain_id: int) -> int:
    """EIP-155 ``v`` for a legacy transaction."""
    return recovery_id + chain_id * 2 + EIP155_V_OFFSET


def recovery_id_from_v(v: int, chain_id: int) -> int:
    """
    Inverse of :func:`v_from_recovery_id`.

    Raises:
        ValidationError: If ``v`` was not produced for ``chain_id``.
    """
    recovery_id = v - chain_id * 2 - EIP155_V_OFFSET
    if recovery_id not in (0, 1):
        raise ValidationError(f"v={v} is not an EIP-155 value for chain {chain_id}")
    return recovery_id


def check_signable(request: TransactionRequest, address: Optional[str] = None) -> None:
    """
    Fail fast if the request is not ready to sign.

    Raises:
        ValidationError: If both fee models are set.
        SignerError: ``MISSING_FIELD`` for an unset nonce, chain id, gas or fee.
    """
    request.check_fee_model()
    if request.nonce is None:
        raise SignerError.missing_field("nonce", address)
    if request.chain_id is None:
        raise SignerError.missing_field("chain_id", address)
    if request.gas is None:
        raise SignerError.missing_field("gas", address)
    if request.has_dynamic_fee:
        if request.max_fee_per_gas is None:
            raise SignerError.missing_field("max_fee_per_gas", address)
        if request.max_priority_fee_per_gas is None:
            raise SignerError.missing_field("max_priority_fee_per_gas", address)
    elif request.gas_price is None:
        raise SignerError.missing_field("gas_price", address)


def _to_field(request: TransactionRequest) -> bytes:
    return address_to_bytes(request.to) if request.to is not None else b""


def _legacy_fields(request: TransactionRequest) -> List[Any]:
    return [
        request.nonce,
        request.gas_price,
        request.gas,
        _to_field(request),
        request.value,
        request.data,
    ]


def _dynamic_fee_fields(request: TransactionRequest) -> List[Any]:
    return [
        request.chain_id,
        request.nonce,
        request.max_priority_fee_per_gas,
        request.max_fee_per_gas,
        request.gas,
        _to_field(request),
        request.value,
        request.data,
        [],
    ]


def signing_payload(request: TransactionRequest) -> bytes:
    """Bytes whose keccak-256 is signed."""
    check_signable(request)
    if request.is_dynamic_fee:
        return bytes([DYNAMIC_FEE_TX_TYPE]) + rlp.encode(_dynamic_fee_fields(request))
    return rlp.encode(_legacy_fields(request) + [request.chain_id, 0, 0])


def signing_digest(request: TransactionRequest) -> bytes:
    return keccak(signing_payload(request))


def encode_signed(request: TransactionRequest, signature: Signature) -> bytes:
    """Assemble the raw signed transaction for ``eth_sendRawTransaction``."""
    check_signable(request)
    if request.is_dynamic_fee:
        fields = _dynamic_fee_fields(request) + [signature.recovery_id, signature.r, signature.s]
        return bytes([DYNAMIC_FEE_TX_TYPE]) + rlp.encode(fields)
    v = v_from_recovery_id(signature.recovery_id, request.chain_id)
    return rlp.encode(_legacy_fields(request) + [v, signature.r, signature.s])


def transaction_hash(raw: bytes) -> str:
    """Hash a node will report for the raw signed transaction."""
    return to_data(keccak(raw))
