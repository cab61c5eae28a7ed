"""
Input Validation - sanitization of amounts, timestamps and identities.

Every value that reaches the auction or a ledger from outside is checked
here first. Validators never raise; they return (is_valid, error_message)
so callers decide which exception to surface.
"""

import re
from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

# Amounts are modelled as unsigned 256-bit integers (EVM word size)
MAX_UINT256 = 2**256 - 1

MIN_AMOUNT = 0
MAX_AMOUNT = MAX_UINT256

# Unix timestamps and durations, in seconds
MIN_TIMESTAMP = 0
MAX_TIMESTAMP = 2**64 - 1

MAX_IDENTITY_LENGTH = 128
ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass, but True is never a meaningful amount
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a token amount (zero allowed)."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_positive_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a token amount that must be strictly positive."""
    return validate_integer(amount, name, 1, MAX_AMOUNT)


def validate_timestamp(value: Any, name: str = "timestamp") -> Tuple[bool, str]:
    """Validate a unix timestamp or a duration in seconds."""
    return validate_integer(value, name, MIN_TIMESTAMP, MAX_TIMESTAMP)


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_IDENTITY_LENGTH,
    pattern: Optional[str] = None,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        pattern: Optional regex pattern

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not value:
        return False, f"{name} must not be empty"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    if pattern and not re.match(pattern, value):
        return False, f"{name} does not match required pattern"

    return True, ""


def validate_identity(value: Any, name: str = "identity") -> Tuple[bool, str]:
    """
    Validate an account or asset identifier.

    Any non-empty string is accepted; addresses are the common case but
    the auction does not depend on their format.
    """
    return validate_string(value, name)


def validate_address(value: Any, name: str = "address") -> Tuple[bool, str]:
    """Validate a 0x-prefixed 20-byte hex address."""
    return validate_string(value, name, max_length=42, pattern=ADDRESS_PATTERN)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_integer",
    "validate_amount",
    "validate_positive_amount",
    "validate_timestamp",
    "validate_string",
    "validate_identity",
    "validate_address",
    "MAX_UINT256",
    "MAX_AMOUNT",
    "MAX_TIMESTAMP",
]
