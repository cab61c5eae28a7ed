"""
Pricing - linear price decay for a reverse Dutch auction.

The price of the whole escrowed lot starts at `starting_price` and drops
by `price_decrease_per_second` every second after `start_time`:

    elapsed = max(0, now - start_time)
    price   = 0                                 if elapsed >= duration
            = 0                                 if elapsed * rate >= starting_price
            = starting_price - elapsed * rate   otherwise

All values are unsigned integers. The product `elapsed * rate` is
bounded to 256 bits; a product that would not fit means the floor has
been passed and the price is 0.
"""

from rda.utils.validation import MAX_UINT256


def window_end(start_time: int, duration: int) -> int:
    """First second at which the auction is time-expired."""
    return start_time + duration


def elapsed_seconds(start_time: int, now: int) -> int:
    """Seconds since start, clamped to 0 before the start."""
    return max(0, now - start_time)


def is_expired(start_time: int, duration: int, now: int) -> bool:
    """True once `now` has reached the end of the window."""
    return now >= window_end(start_time, duration)


def price_decrease(elapsed: int, rate: int) -> int:
    """
    Total decrease after `elapsed` seconds.

    Saturates at MAX_UINT256 instead of growing past the word size.
    """
    if rate and elapsed > MAX_UINT256 // rate:
        return MAX_UINT256
    return elapsed * rate


def compute_price(
    starting_price: int,
    price_decrease_per_second: int,
    start_time: int,
    duration: int,
    now: int,
) -> int:
    """
    Current price of the escrowed lot.

    Pure and safe to call at any time: before the start it returns
    `starting_price`, after expiry or past the floor it returns 0.

    Args:
        starting_price: Price at `start_time`
        price_decrease_per_second: Linear decay rate
        start_time: Unix time the auction opened
        duration: Window length in seconds
        now: Time to price at

    Returns:
        Price in payment-asset base units
    """
    elapsed = elapsed_seconds(start_time, now)
    if elapsed >= duration:
        return 0

    decrease = price_decrease(elapsed, price_decrease_per_second)
    if decrease >= starting_price:
        return 0

    return starting_price - decrease


__all__ = [
    "compute_price",
    "price_decrease",
    "elapsed_seconds",
    "window_end",
    "is_expired",
]
