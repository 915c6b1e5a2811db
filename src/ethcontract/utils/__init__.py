"""
ethcontract utilities.

This module provides logging, retry and wire-encoding helpers.
"""

from ethcontract.utils.logging import (
    get_logger,
    configure_logging,
    set_level,
    disable_logging,
    enable_debug,
    LogContext,
)
from ethcontract.utils.retry import RetryConfig, calculate_delay, retry_async, with_retry
from ethcontract.utils.hexutil import (
    address_to_bytes,
    from_data,
    from_quantity,
    normalize_address,
    to_data,
    to_quantity,
)

__all__ = [
    # Structured logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    "LogContext",
    # Retry
    "RetryConfig",
    "calculate_delay",
    "retry_async",
    "with_retry",
    # Wire encoding
    "address_to_bytes",
    "from_data",
    "from_quantity",
    "normalize_address",
    "to_data",
    "to_quantity",
]
