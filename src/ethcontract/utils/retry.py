"""
Retry utilities for ethcontract.

Provides exponential backoff with jitter for transient transport failures.
Only the transport layer retries; signers and the transaction pipeline never
retry on their own.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from functools import wraps
from typing import (
    Awaitable,
    Callable,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from ethcontract.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Example:
        ```python
        config = RetryConfig(
            max_attempts=5,
            base_delay_ms=250,
            jitter=True,
            retryable_errors=(httpx.TransportError,),
        )
        ```
    """

    max_attempts: int = 3
    """Maximum number of attempts (including the first one)."""

    base_delay_ms: int = 1000
    """Base delay in milliseconds for exponential backoff."""

    max_delay_ms: int = 30000
    """Maximum delay in milliseconds (cap for exponential growth)."""

    jitter: bool = True
    """Whether to add random jitter to delays."""

    exponential_base: float = 2.0
    """Base for exponential backoff calculation."""

    retryable_errors: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )
    """Tuple of exception types that should trigger a retry."""

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("delays must be non-negative")


NO_RETRY = RetryConfig(max_attempts=1, base_delay_ms=0, jitter=False)


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay with exponential backoff and optional jitter.

    Args:
        attempt: Zero-based attempt number (0 = first retry)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay_ms = config.base_delay_ms * (config.exponential_base ** attempt)
    delay_ms = min(delay_ms, config.max_delay_ms)

    if config.jitter:
        # Full jitter
        delay_ms = random.uniform(0, delay_ms)

    return delay_ms / 1000


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    *,
    operation: str = "operation",
) -> T:
    """
    Execute async function with retry logic.

    Args:
        fn: Async function to execute (no arguments)
        config: Retry configuration (uses defaults if None)
        operation: Label used in log records

    Returns:
        Result of the function

    Raises:
        The last exception if all attempts fail, or the first
        non-retryable exception.

    Example:
        ```python
        result = await retry_async(
            lambda: client.post(url, json=payload),
            RetryConfig(max_attempts=5, retryable_errors=(httpx.TransportError,)),
            operation="eth_blockNumber",
        )
        ```
    """
    config = config or RetryConfig()
    last_error: Optional[Exception] = None

    for attempt in range(config.max_attempts):
        try:
            return await fn()
        except config.retryable_errors as e:
            last_error = e

            if attempt < config.max_attempts - 1:
                delay = calculate_delay(attempt, config)
                _logger.warning(
                    "Retrying after transient failure",
                    extra={
                        "operation": operation,
                        "attempt": attempt + 1,
                        "max_attempts": config.max_attempts,
                        "delay_s": round(delay, 3),
                        "error": str(e),
                    },
                )
                await asyncio.sleep(delay)

    if last_error is not None:
        raise last_error

    raise RuntimeError("Retry exhausted without error")


def with_retry(
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for adding retry logic to async functions.

    Args:
        config: Retry configuration (uses defaults if None)

    Returns:
        Decorator function
    """
    def decorator(
        fn: Callable[..., Awaitable[T]],
    ) -> Callable[..., Awaitable[T]]:
        @wraps(fn)
        async def wrapper(*args: object, **kwargs: object) -> T:
            return await retry_async(
                lambda: fn(*args, **kwargs),
                config,
                operation=fn.__name__,
            )
        return wrapper
    return decorator
