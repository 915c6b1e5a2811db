"""
Runtime configuration.

TransportConfig describes how to reach a node; PipelineConfig holds the
caller's transaction policy (gas margin, fee defaults, confirmation policy).

Example:
    ```python
    # reads ETHCONTRACT_RPC_URL / ETHCONTRACT_RPC_TIMEOUT_MS, .env included
    transport_config = TransportConfig.from_env()
    pipeline_config = PipelineConfig(
        fees=FeeDefaults(max_fee_per_gas=30 * 10**9, max_priority_fee_per_gas=10**9),
        confirmation=ConfirmationPolicy(required_confirmations=3),
    )
    ```
"""

from __future__ import annotations

import os
from typing import Dict, Optional, Tuple, Type

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from ethcontract.constants import GAS_ESTIMATION_BUFFER, MAX_GAS_LIMIT, PROVIDER_TIMEOUT_MS
from ethcontract.errors import ValidationError
from ethcontract.types.transaction import ConfirmationPolicy, FeeDefaults
from ethcontract.utils.retry import RetryConfig

ENV_RPC_URL = "ETHCONTRACT_RPC_URL"
ENV_RPC_TIMEOUT_MS = "ETHCONTRACT_RPC_TIMEOUT_MS"
ENV_RPC_MAX_ATTEMPTS = "ETHCONTRACT_RPC_MAX_ATTEMPTS"


class TransportConfig(BaseModel):
    """Configuration for the HTTP JSON-RPC transport."""

    model_config = ConfigDict(frozen=True)

    rpc_url: str = Field(
        ...,
        description="JSON-RPC endpoint, e.g. https://sepolia.base.org",
    )
    timeout_ms: int = Field(
        default=PROVIDER_TIMEOUT_MS,
        ge=100,
        description="Request timeout in milliseconds",
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra HTTP headers (API keys for hosted nodes)",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per request when the network fails (1 disables retry)",
    )
    retry_base_delay_ms: int = Field(
        default=500,
        ge=0,
        description="Base delay in ms for exponential backoff between attempts",
    )

    def retry_config(self, retryable_errors: Tuple[Type[Exception], ...]) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            base_delay_ms=self.retry_base_delay_ms,
            retryable_errors=retryable_errors,
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "TransportConfig":
        """
        Build from environment variables, loading a ``.env`` file first.

        Raises:
            ValidationError: If ETHCONTRACT_RPC_URL is not set or a numeric
                variable is malformed.
        """
        load_dotenv(dotenv_path)
        rpc_url = os.environ.get(ENV_RPC_URL)
        if not rpc_url:
            raise ValidationError(f"{ENV_RPC_URL} is not set")

        values: Dict[str, object] = {"rpc_url": rpc_url}
        for env_name, field_name in (
            (ENV_RPC_TIMEOUT_MS, "timeout_ms"),
            (ENV_RPC_MAX_ATTEMPTS, "max_attempts"),
        ):
            raw = os.environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                values[field_name] = int(raw)
            except ValueError:
                raise ValidationError(f"{env_name} must be an integer, got {raw!r}") from None
        return cls(**values)


class PipelineConfig(BaseModel):
    """Transaction pipeline policy."""

    model_config = ConfigDict(frozen=True)

    gas_margin: float = Field(
        default=GAS_ESTIMATION_BUFFER,
        ge=1.0,
        description="Multiplier applied to eth_estimateGas results",
    )
    max_gas: int = Field(
        default=MAX_GAS_LIMIT,
        ge=21_000,
        description="Upper bound for estimated gas limits",
    )
    fees: FeeDefaults = Field(
        default_factory=FeeDefaults,
        description="Fee values for requests that carry none",
    )
    confirmation: ConfirmationPolicy = Field(
        default_factory=ConfirmationPolicy,
        description="Default confirmation policy for send()",
    )
