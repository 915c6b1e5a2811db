"""
Transaction types.

TransactionRequest is the mutable draft the pipeline fills in; the
PendingTransaction tracks one submitted transaction through confirmation.
FeeDefaults and ConfirmationPolicy are caller-supplied policy objects.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ethcontract.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
)
from ethcontract.errors import ValidationError
from ethcontract.utils.hexutil import normalize_address, to_data, to_quantity


# ============================================================================
# Transaction Request
# ============================================================================

@dataclass
class TransactionRequest:
    """
    A transaction draft.

    Exactly one fee model must be present before signing: legacy
    ``gas_price``, or EIP-1559 ``max_fee_per_gas`` plus
    ``max_priority_fee_per_gas``.

    Attributes:
        from_address: Sender address.
        to: Recipient; None for contract creation.
        value: Wei transferred.
        data: Call data.
        gas: Gas limit.
        gas_price: Legacy gas price in wei.
        max_fee_per_gas: EIP-1559 fee cap in wei.
        max_priority_fee_per_gas: EIP-1559 tip in wei.
        nonce: Sender nonce.
        chain_id: EIP-155 chain id.
    """

    from_address: Optional[str] = None
    to: Optional[str] = None
    value: int = 0
    data: bytes = b""
    gas: Optional[int] = None
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    nonce: Optional[int] = None
    chain_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.from_address is not None:
            self.from_address = normalize_address(self.from_address, "from_address")
        if self.to is not None:
            self.to = normalize_address(self.to, "to")
        self.data = bytes(self.data)
        for name in (
            "value",
            "gas",
            "gas_price",
            "max_fee_per_gas",
            "max_priority_fee_per_gas",
            "nonce",
            "chain_id",
        ):
            number = getattr(self, name)
            if number is None:
                continue
            if isinstance(number, bool) or not isinstance(number, int) or number < 0:
                raise ValidationError(f"{name} must be a non-negative int, got {number!r}")

    @property
    def has_legacy_fee(self) -> bool:
        return self.gas_price is not None

    @property
    def has_dynamic_fee(self) -> bool:
        return self.max_fee_per_gas is not None or self.max_priority_fee_per_gas is not None

    @property
    def is_dynamic_fee(self) -> bool:
        """True when the request will be serialized as an EIP-1559 transaction."""
        return self.has_dynamic_fee and not self.has_legacy_fee

    def check_fee_model(self) -> None:
        """Raise ValidationError if both fee models are set."""
        if self.has_legacy_fee and self.has_dynamic_fee:
            raise ValidationError(
                "gas_price and max_fee_per_gas/max_priority_fee_per_gas are mutually exclusive"
            )

    def replace(self, **changes: Any) -> "TransactionRequest":
        return dataclasses.replace(self, **changes)

    def to_rpc(self) -> Dict[str, Any]:
        """JSON-RPC transaction object (only fields that are set)."""
        tx: Dict[str, Any] = {}
        if self.from_address is not None:
            tx["from"] = self.from_address
        if self.to is not None:
            tx["to"] = self.to
        if self.value:
            tx["value"] = to_quantity(self.value)
        if self.data:
            tx["data"] = to_data(self.data)
        if self.gas is not None:
            tx["gas"] = to_quantity(self.gas)
        if self.gas_price is not None:
            tx["gasPrice"] = to_quantity(self.gas_price)
        if self.max_fee_per_gas is not None:
            tx["maxFeePerGas"] = to_quantity(self.max_fee_per_gas)
        if self.max_priority_fee_per_gas is not None:
            tx["maxPriorityFeePerGas"] = to_quantity(self.max_priority_fee_per_gas)
        if self.nonce is not None:
            tx["nonce"] = to_quantity(self.nonce)
        if self.chain_id is not None:
            tx["chainId"] = to_quantity(self.chain_id)
        return tx


# ============================================================================
# Policy objects
# ============================================================================

class FeeDefaults(BaseModel):
    """
    Caller-supplied fee values applied to requests that lack them.

    The pipeline never invents a price: with empty defaults, a request
    without fee fields reaches the signer unchanged and fails there.
    """

    model_config = ConfigDict(frozen=True)

    gas_price: Optional[int] = Field(default=None, ge=0, description="Legacy gas price in wei")
    max_fee_per_gas: Optional[int] = Field(default=None, ge=0, description="EIP-1559 fee cap in wei")
    max_priority_fee_per_gas: Optional[int] = Field(
        default=None, ge=0, description="EIP-1559 priority fee in wei"
    )

    @model_validator(mode="after")
    def _single_fee_model(self) -> "FeeDefaults":
        if self.gas_price is not None and (
            self.max_fee_per_gas is not None or self.max_priority_fee_per_gas is not None
        ):
            raise ValueError("FeeDefaults must use either gas_price or EIP-1559 fees, not both")
        return self

    def apply(self, request: TransactionRequest) -> TransactionRequest:
        """
        Fill the request's missing fee fields.

        A request that already chose a fee model only has the missing
        fields of that same model filled in.
        """
        request.check_fee_model()
        if request.has_legacy_fee:
            return request
        if request.has_dynamic_fee:
            return request.replace(
                max_fee_per_gas=_first(request.max_fee_per_gas, self.max_fee_per_gas),
                max_priority_fee_per_gas=_first(
                    request.max_priority_fee_per_gas, self.max_priority_fee_per_gas
                ),
            )
        return request.replace(
            gas_price=self.gas_price,
            max_fee_per_gas=self.max_fee_per_gas,
            max_priority_fee_per_gas=self.max_priority_fee_per_gas,
        )


def _first(*values: Optional[int]) -> Optional[int]:
    for value in values:
        if value is not None:
            return value
    return None


class ConfirmationPolicy(BaseModel):
    """
    How long and how deep to wait for a submitted transaction.

    A receipt at block ``B`` counts as confirmed once the chain head is at
    least ``B + required_confirmations``.
    """

    model_config = ConfigDict(frozen=True)

    required_confirmations: int = Field(
        default=1,
        ge=0,
        description="Blocks the head must advance past the receipt's block",
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        gt=0,
        description="Seconds between polls",
    )
    timeout: Optional[float] = Field(
        default=DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
        gt=0,
        description="Wall-clock deadline in seconds (None waits forever)",
    )
    timeout_blocks: Optional[int] = Field(
        default=None,
        ge=1,
        description="Give up after this many blocks pass without a receipt",
    )


# ============================================================================
# Pending Transaction
# ============================================================================

class TransactionState(str, Enum):
    """Pipeline state of a transaction."""

    BUILDING = "building"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    MINED = "mined"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"
    REVERTED = "reverted"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionState.CONFIRMED, TransactionState.TIMED_OUT, TransactionState.REVERTED)


@dataclass
class PendingTransaction:
    """
    A submitted transaction and what has been observed about it.

    Attributes:
        tx_hash: Transaction hash returned by the node.
        policy: Confirmation policy used by ``wait``.
        state: Current pipeline state.
        block_number: Block of the receipt, once mined.
        receipt: Receipt object as returned by the node.
        revert_reason: Reason recovered after a revert, if any.
        request: The request that was signed, used to replay a revert.
    """

    tx_hash: str
    policy: ConfirmationPolicy = field(default_factory=ConfirmationPolicy)
    state: TransactionState = TransactionState.SUBMITTED
    block_number: Optional[int] = None
    receipt: Optional[Dict[str, Any]] = None
    revert_reason: Optional[str] = None
    request: Optional[TransactionRequest] = None

    @property
    def is_mined(self) -> bool:
        return self.block_number is not None
