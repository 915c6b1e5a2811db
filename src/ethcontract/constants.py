"""Constants for ethcontract.

This module defines constant values used across the runtime, including ABI
encoding constants, revert payload selectors, gas parameters and polling
defaults.
"""

# ABI Encoding Constants
ABI_SELECTOR_LENGTH = 4
ABI_WORD_LENGTH = 32
ABI_TOPIC_LENGTH = 32
MAX_INDEXED_PARAMS = 3
MAX_ANONYMOUS_INDEXED_PARAMS = 4

# Revert payloads: Error(string) and Panic(uint256)
REVERT_SELECTOR = "0x08c379a0"
PANIC_SELECTOR = "0x4e487b71"

# Solidity panic codes (Panic(uint256) argument)
PANIC_REASONS = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array encoding",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to zero-initialized internal function",
}

# Transaction type envelopes
LEGACY_TX_TYPE = 0x00
DYNAMIC_FEE_TX_TYPE = 0x02

# EIP-155 replay protection: v = recovery_id + chain_id * 2 + 35
EIP155_V_OFFSET = 35

# Gas Constants
GAS_ESTIMATION_BUFFER = 1.15
MAX_GAS_LIMIT = 30_000_000

# Network / polling defaults
PROVIDER_TIMEOUT_MS = 30_000
DEFAULT_POLL_INTERVAL_SECONDS = 7.0
DEFAULT_CONFIRMATION_TIMEOUT_SECONDS = 300.0
DEFAULT_LOG_PAGE_SIZE = 1_000

__all__ = [
    "ABI_SELECTOR_LENGTH",
    "ABI_WORD_LENGTH",
    "ABI_TOPIC_LENGTH",
    "MAX_INDEXED_PARAMS",
    "MAX_ANONYMOUS_INDEXED_PARAMS",
    "REVERT_SELECTOR",
    "PANIC_SELECTOR",
    "PANIC_REASONS",
    "LEGACY_TX_TYPE",
    "DYNAMIC_FEE_TX_TYPE",
    "EIP155_V_OFFSET",
    "GAS_ESTIMATION_BUFFER",
    "MAX_GAS_LIMIT",
    "PROVIDER_TIMEOUT_MS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_CONFIRMATION_TIMEOUT_SECONDS",
    "DEFAULT_LOG_PAGE_SIZE",
]
