"""
Tests for the retry helpers used by the HTTP transport.

Tests cover:
- RetryConfig validation
- Exponential backoff, cap and jitter
- Retryable error filtering
- The with_retry decorator
"""

from unittest.mock import AsyncMock, patch

import pytest

from ethcontract.errors import RpcError, RpcTransportError
from ethcontract.utils.retry import (
    NO_RETRY,
    RetryConfig,
    calculate_delay,
    retry_async,
    with_retry,
)

SLEEP = "ethcontract.utils.retry.asyncio.sleep"


# =============================================================================
# RetryConfig Tests
# =============================================================================


class TestRetryConfig:
    """Tests for RetryConfig dataclass."""

    def test_defaults(self) -> None:
        config = RetryConfig()

        assert config.max_attempts == 3
        assert config.base_delay_ms == 1000
        assert config.max_delay_ms == 30000
        assert config.jitter is True
        assert config.retryable_errors == (Exception,)

    def test_no_retry_preset(self) -> None:
        assert NO_RETRY.max_attempts == 1
        assert NO_RETRY.jitter is False

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay_ms": -1}, {"max_delay_ms": -5}],
    )
    def test_invalid_values(self, kwargs) -> None:
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)


# =============================================================================
# Delay Calculation Tests
# =============================================================================


class TestDelayCalculation:
    """Tests for calculate_delay function."""

    def test_exponential_growth(self) -> None:
        """Delays double per attempt: 0.5s, 1s, 2s, 4s."""
        config = RetryConfig(base_delay_ms=500, jitter=False)
        assert [calculate_delay(i, config) for i in range(4)] == [0.5, 1.0, 2.0, 4.0]

    def test_custom_base(self) -> None:
        config = RetryConfig(base_delay_ms=100, jitter=False, exponential_base=3.0)
        assert calculate_delay(2, config) == pytest.approx(0.9)

    def test_capped(self) -> None:
        config = RetryConfig(base_delay_ms=1000, max_delay_ms=2500, jitter=False)
        assert calculate_delay(10, config) == 2.5

    def test_full_jitter_stays_in_range(self) -> None:
        config = RetryConfig(base_delay_ms=1000, jitter=True)
        delays = [calculate_delay(1, config) for _ in range(200)]

        assert all(0 <= d <= 2.0 for d in delays)
        assert min(delays) != max(delays)

    def test_zero_base_delay(self) -> None:
        assert calculate_delay(3, RetryConfig(base_delay_ms=0)) == 0


# =============================================================================
# retry_async Tests
# =============================================================================


class TestRetryAsync:
    """Tests for retry_async function."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self) -> None:
        fn = AsyncMock(return_value="0x1")
        assert await retry_async(fn, RetryConfig(max_attempts=3)) == "0x1"
        assert fn.call_count == 1

    @pytest.mark.asyncio
    async def test_transient_failures_then_success(self) -> None:
        fn = AsyncMock(
            side_effect=[
                RpcTransportError("connection reset"),
                RpcTransportError("HTTP 503 from node"),
                "0x1",
            ]
        )
        config = RetryConfig(max_attempts=3, jitter=False, retryable_errors=(RpcTransportError,))

        with patch(SLEEP, new_callable=AsyncMock) as mock_sleep:
            result = await retry_async(fn, config, operation="eth_chainId")

        assert result == "0x1"
        assert fn.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self) -> None:
        errors = [RpcTransportError("first"), RpcTransportError("second")]
        fn = AsyncMock(side_effect=errors)
        config = RetryConfig(max_attempts=2, retryable_errors=(RpcTransportError,))

        with patch(SLEEP, new_callable=AsyncMock):
            with pytest.raises(RpcTransportError) as exc_info:
                await retry_async(fn, config)

        assert exc_info.value is errors[1]

    @pytest.mark.asyncio
    async def test_node_errors_not_retried(self) -> None:
        """RpcError is an answer from the node, not a transport failure."""
        fn = AsyncMock(side_effect=RpcError("nonce too low", rpc_code=-32000))
        config = RetryConfig(max_attempts=5, retryable_errors=(RpcTransportError,))

        with patch(SLEEP, new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(RpcError):
                await retry_async(fn, config)

        assert fn.call_count == 1
        mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_retry_preset(self) -> None:
        fn = AsyncMock(side_effect=RpcTransportError("down"))
        with pytest.raises(RpcTransportError):
            await retry_async(fn, NO_RETRY)
        assert fn.call_count == 1

    @pytest.mark.asyncio
    async def test_logs_each_retry(self, caplog) -> None:
        fn = AsyncMock(side_effect=[RpcTransportError("reset"), "ok"])
        config = RetryConfig(max_attempts=2, retryable_errors=(RpcTransportError,))

        with patch(SLEEP, new_callable=AsyncMock):
            with caplog.at_level("WARNING", logger="ethcontract"):
                await retry_async(fn, config, operation="eth_getLogs")

        [record] = [r for r in caplog.records if r.name == "ethcontract.utils.retry"]
        assert record.operation == "eth_getLogs"
        assert record.attempt == 1


# =============================================================================
# with_retry Decorator Tests
# =============================================================================


class TestWithRetryDecorator:
    """Tests for with_retry decorator."""

    @pytest.mark.asyncio
    async def test_retries_decorated_function(self) -> None:
        attempts = []

        @with_retry(RetryConfig(max_attempts=3, retryable_errors=(ConnectionError,)))
        async def fetch_head(label: str) -> str:
            attempts.append(label)
            if len(attempts) < 2:
                raise ConnectionError("refused")
            return f"{label}:ok"

        with patch(SLEEP, new_callable=AsyncMock):
            assert await fetch_head("node") == "node:ok"
        assert attempts == ["node", "node"]

    def test_preserves_metadata(self) -> None:
        @with_retry()
        async def fetch_head() -> None:
            """Fetch the chain head."""

        assert fetch_head.__name__ == "fetch_head"
        assert fetch_head.__doc__ == "Fetch the chain head."
