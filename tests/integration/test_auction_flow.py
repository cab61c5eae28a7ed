"""
Auction Flow Tests - end to end runs over real token ledgers.

Tests verify:
1. Sale at 30 seconds into a one hour window
2. Expiry with the lot returned to the seller
3. The single-token deployment (token priced in itself)
4. Conservation of supply across a full lifecycle
"""

import pytest

from rda.core.auction import (
    AuctionConfig,
    AuctionStatus,
    Custody,
    ReverseDutchAuction,
    WindowExpired,
)
from rda.core.clock import ManualClock
from rda.core.config import NetworkConfig
from rda.core.deployment import deploy
from rda.core.ledger import AssetRegistry, TokenLedger, parse_units


SELLER = "0x" + "11" * 20
BUYER = "0x" + "22" * 20
ESCROW = "0x" + "ee" * 20
LOT_ADDRESS = "0x" + "aa" * 20
CASH_ADDRESS = "0x" + "bb" * 20

START = 1_700_000_000


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def market():
    """Two tokens, a one hour auction selling LOT for CSH, and its clock."""
    clock = ManualClock(START)
    lot = TokenLedger(LOT_ADDRESS, "Lot", "LOT", SELLER, initial_supply=10_000, decimals=0)
    cash = TokenLedger(CASH_ADDRESS, "Cash", "CSH", SELLER, initial_supply=5_000_000, decimals=0)
    cash.transfer(SELLER, BUYER, 1_000_000)

    registry = AssetRegistry()
    registry.register(lot)
    registry.register(cash)

    config = AuctionConfig(
        sale_asset=LOT_ADDRESS,
        payment_asset=CASH_ADDRESS,
        seller=SELLER,
        starting_price=1_000_000,
        price_decrease_per_second=1,
        start_time=START,
        duration=3600,
    )
    auction = ReverseDutchAuction(config, Custody(registry, ESCROW), clock=clock)
    return auction, lot, cash, clock


@pytest.fixture
def turbulence():
    """
    Single-token deployment: 10000 TBL owned by the seller, 1000 TBL
    deposited, 5 TBL handed to the buyer.
    """
    clock = ManualClock(START)
    config = NetworkConfig(initial_supply="10000")
    deployment = deploy(config, SELLER, now=START, clock=clock, accounts={"buyer": BUYER})

    token = deployment.token
    auction = deployment.auction
    deposit = parse_units("1000")
    token.approve(SELLER, auction.address, deposit)
    auction.deposit(deposit, SELLER)
    token.transfer(SELLER, BUYER, parse_units("5"))
    return deployment, clock


# =============================================================================
# Two-Asset Scenarios
# =============================================================================


class TestSaleScenario:
    """Deposit 1000, buy 30 seconds in."""

    def test_sale_at_thirty_seconds(self, market):
        auction, lot, cash, clock = market

        assert auction.current_price() == 1_000_000
        lot.approve(SELLER, auction.address, 1_000)
        auction.deposit(1_000, SELLER)

        clock.advance(30)
        assert auction.current_price() == 999_970

        cash.approve(BUYER, auction.address, 999_970)
        sale = auction.buy(BUYER)

        assert sale.price == 999_970
        assert sale.amount == 1_000
        assert lot.balance_of(BUYER) == 1_000
        assert cash.balance_of(BUYER) == 30
        assert cash.balance_of(SELLER) == 4_000_000 + 999_970
        assert auction.escrowed_amount == 0
        assert auction.status == AuctionStatus.SOLD

    def test_price_hits_zero_at_window_end(self, market):
        auction, _, _, clock = market
        clock.advance(3600)
        assert auction.current_price() == 0


class TestExpiryScenario:
    """Deposit 500, let the window elapse, finalize."""

    def test_lot_returned_after_expiry(self, market):
        auction, lot, _, clock = market
        lot.approve(SELLER, auction.address, 500)
        auction.deposit(500, SELLER)
        balance_after_deposit = lot.balance_of(SELLER)

        clock.advance(3600)
        returned = auction.finalize(BUYER)

        assert returned == 500
        assert lot.balance_of(SELLER) == balance_after_deposit + 500
        assert auction.status == AuctionStatus.CLOSED
        assert auction.escrowed_amount == 0

    def test_supply_conserved(self, market):
        auction, lot, cash, clock = market
        lot.approve(SELLER, auction.address, 500)
        auction.deposit(500, SELLER)
        clock.advance(7200)
        auction.finalize(SELLER)

        assert sum(lot.balances.values()) == lot.total_supply
        assert sum(cash.balances.values()) == cash.total_supply


# =============================================================================
# Single-Token Deployment
# =============================================================================


class TestSingleTokenDeployment:
    """The deployed shape: Turbulence sold for Turbulence."""

    def test_deployment_parameters(self, turbulence):
        deployment, _ = turbulence
        auction = deployment.auction
        assert auction.config.starting_price == parse_units("1.0")
        assert auction.seller == SELLER
        assert auction.config.start_time == START
        assert auction.config.sale_asset == auction.config.payment_asset == deployment.token.address

    def test_price_decreases_over_time(self, turbulence):
        deployment, clock = turbulence
        initial_price = deployment.auction.current_price()
        clock.advance(30)
        assert deployment.auction.current_price() < initial_price

    def test_buy_at_current_price(self, turbulence):
        deployment, clock = turbulence
        token = deployment.token
        auction = deployment.auction

        clock.advance(30)
        buyer_before = token.balance_of(BUYER)
        seller_before = token.balance_of(SELLER)
        escrow_before = token.balance_of(auction.address)
        price = auction.current_price()

        token.approve(BUYER, auction.address, price)
        auction.buy(BUYER)

        assert token.balance_of(BUYER) - buyer_before == escrow_before - price
        assert token.balance_of(SELLER) - seller_before == price
        assert token.balance_of(auction.address) == 0

    def test_buy_after_window(self, turbulence):
        deployment, clock = turbulence
        token = deployment.token
        auction = deployment.auction

        clock.advance(60 * 60 + 1)
        token.approve(BUYER, auction.address, parse_units("1.0"))

        with pytest.raises(WindowExpired, match="Auction has expired."):
            auction.buy(BUYER)
