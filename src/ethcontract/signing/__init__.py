"""
Transaction signing: key handling, serialization and signer variants.
"""

from ethcontract.signing.keys import SecretKey, Signature
from ethcontract.signing.transaction import (
    check_signable,
    encode_signed,
    recovery_id_from_v,
    signing_digest,
    signing_payload,
    transaction_hash,
    v_from_recovery_id,
)
from ethcontract.signing.signers import (
    DigestSigner,
    LocalSigner,
    NodeManagedSigner,
    OfflineSigner,
    Signer,
)

__all__ = [
    "SecretKey",
    "Signature",
    "check_signable",
    "encode_signed",
    "recovery_id_from_v",
    "signing_digest",
    "signing_payload",
    "transaction_hash",
    "v_from_recovery_id",
    "DigestSigner",
    "LocalSigner",
    "NodeManagedSigner",
    "OfflineSigner",
    "Signer",
]
