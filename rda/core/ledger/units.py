"""
Unit conversion between display amounts ("1.5 TBL") and base units.

Tokens carry `decimals` fractional digits; all ledger arithmetic happens
in integer base units.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

DEFAULT_DECIMALS = 18


def parse_units(value: Union[str, int, Decimal], decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a display amount to base units.

    >>> parse_units("1.0")
    1000000000000000000
    >>> parse_units("0.00005")
    50000000000000

    Raises:
        ValueError: if the value is negative, malformed, or has more
            fractional digits than `decimals` allows.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {value}")

    scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more than {decimals} decimal places")
    return int(scaled)


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Convert base units to a display string.

    Always keeps at least one fractional digit, like ethers' formatUnits.

    >>> format_units(999970000000000000)
    '0.99997'
    >>> format_units(10**18)
    '1.0'
    """
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    if decimals == 0:
        return str(amount)
    whole, frac = divmod(amount, 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{whole}.{frac_str}"
