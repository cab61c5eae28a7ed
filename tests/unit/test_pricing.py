"""
Unit tests for linear price decay.

Tests cover:
1. Price at and before start
2. Exact linear decrease inside the window
3. Floor reached before expiry
4. Time expiry
5. Overflow saturation
"""

import pytest

from rda.core.auction import (
    compute_price,
    price_decrease,
    elapsed_seconds,
    window_end,
    is_expired,
)
from rda.utils.validation import MAX_UINT256


START = 1_700_000_000
STARTING_PRICE = 1_000_000
RATE = 1
DURATION = 3600


def price_at(elapsed: int, starting_price: int = STARTING_PRICE, rate: int = RATE, duration: int = DURATION) -> int:
    return compute_price(starting_price, rate, START, duration, START + elapsed)


class TestPriceDecay:
    """Tests for the price inside the window."""

    def test_price_at_start(self):
        """At elapsed 0 the price is the starting price."""
        assert price_at(0) == STARTING_PRICE

    def test_price_before_start_is_clamped(self):
        """Before start_time elapsed is clamped to zero."""
        assert compute_price(STARTING_PRICE, RATE, START, DURATION, START - 500) == STARTING_PRICE
        assert compute_price(STARTING_PRICE, RATE, START, DURATION, 0) == STARTING_PRICE

    def test_price_after_30_seconds(self):
        """Reference scenario: 1_000_000 - 30 * 1."""
        assert price_at(30) == 999_970

    def test_price_is_exactly_linear(self):
        """Price equals starting_price - elapsed * rate inside the window."""
        for elapsed in (1, 7, 100, 1234, 3599):
            assert price_at(elapsed, rate=3) == STARTING_PRICE - elapsed * 3

    def test_price_strictly_decreasing(self):
        """Price drops every second while above the floor."""
        prices = [price_at(elapsed, rate=5) for elapsed in range(0, 200)]
        assert all(later < earlier for earlier, later in zip(prices, prices[1:]))

    def test_zero_rate_keeps_price_flat(self):
        """With no decay the price is constant until expiry."""
        assert price_at(3599, rate=0) == STARTING_PRICE
        assert price_at(3600, rate=0) == 0

    def test_default_deployment_parameters(self):
        """1.0 token start, 0.00005 token/s decay, one hour."""
        one = 10**18
        rate = 5 * 10**13
        assert compute_price(one, rate, START, 3600, START + 30) == one - 30 * rate
        assert compute_price(one, rate, START, 3600, START + 30) < one


class TestPriceFloor:
    """Tests for the zero price paths."""

    def test_zero_at_expiry(self):
        """At elapsed == duration the price is zero."""
        assert price_at(3600) == 0

    def test_zero_long_after_expiry(self):
        """Price stays pinned at zero far past the window."""
        assert price_at(10**9) == 0

    def test_floor_before_expiry(self):
        """decrease >= starting_price gives 0 even inside the window."""
        assert price_at(100, starting_price=1000, rate=10) == 0
        assert price_at(150, starting_price=1000, rate=10) == 0
        assert price_at(99, starting_price=1000, rate=10) == 10

    def test_zero_duration_is_always_expired(self):
        """A zero-length window never has a price."""
        assert price_at(0, duration=0) == 0

    def test_zero_starting_price(self):
        """Nothing to decay from."""
        assert price_at(0, starting_price=0) == 0


class TestOverflow:
    """Tests for saturation of elapsed * rate."""

    def test_decrease_saturates(self):
        """A product beyond 256 bits saturates instead of growing."""
        assert price_decrease(2**200, 2**100) == MAX_UINT256

    def test_decrease_fits(self):
        """Products that fit are exact."""
        assert price_decrease(10, 20) == 200
        assert price_decrease(10, 0) == 0

    def test_overflow_means_zero_price(self):
        """An overflowing decrease is treated as past the floor."""
        huge_rate = MAX_UINT256 // 2
        assert compute_price(MAX_UINT256, huge_rate, START, 2**64, START + 3) == 0


class TestWindowHelpers:
    """Tests for window arithmetic."""

    def test_window_end(self):
        assert window_end(START, DURATION) == START + DURATION

    def test_is_expired_boundary(self):
        """The window is half-open: [start, start + duration)."""
        assert not is_expired(START, DURATION, START + DURATION - 1)
        assert is_expired(START, DURATION, START + DURATION)

    def test_elapsed_seconds(self):
        assert elapsed_seconds(START, START + 42) == 42
        assert elapsed_seconds(START, START - 42) == 0


@pytest.mark.parametrize("elapsed", [0, 1, 59, 3599, 3600, 7200])
def test_price_never_negative(elapsed):
    """Price is a non-negative integer for every elapsed time."""
    price = price_at(elapsed, rate=1000)
    assert isinstance(price, int)
    assert price >= 0
