"""
Unit tests for the token ledger and asset registry.

Tests cover:
1. Initial supply and balances
2. Transfers and allowances
3. Failure without partial effect
4. Minting
5. Snapshot / restore
6. Serialization
7. Unit conversion
"""

import pytest

from rda.core.ledger import (
    AssetLedger,
    AssetRegistry,
    TokenLedger,
    parse_units,
    format_units,
)


OWNER = "0x" + "11" * 20
ALICE = "0x" + "22" * 20
SPENDER = "0x" + "33" * 20
TOKEN_ADDRESS = "0x" + "aa" * 20


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def token():
    """Token with the whole supply owned by OWNER."""
    return TokenLedger(TOKEN_ADDRESS, "Turbulence", "TBL", OWNER, initial_supply=10_000)


# =============================================================================
# Token Tests
# =============================================================================


class TestTokenBasics:
    """Tests for supply and balances."""

    def test_initial_supply_owned_by_owner(self, token):
        assert token.total_supply == 10_000
        assert token.balance_of(OWNER) == 10_000
        assert token.initial_supply == 10_000

    def test_unknown_holder_has_zero(self, token):
        assert token.balance_of(ALICE) == 0

    def test_satisfies_asset_ledger_protocol(self, token):
        assert isinstance(token, AssetLedger)

    def test_invalid_construction(self):
        with pytest.raises(ValueError):
            TokenLedger("", "X", "X", OWNER)
        with pytest.raises(ValueError):
            TokenLedger(TOKEN_ADDRESS, "X", "X", OWNER, initial_supply=-1)

    def test_format(self, token):
        assert token.format(10**18) == "1.0 TBL"


class TestTransfers:
    """Tests for transfer and transfer_from."""

    def test_transfer_moves_balance(self, token):
        success, error = token.transfer(OWNER, ALICE, 300)
        assert success, error
        assert token.balance_of(OWNER) == 9_700
        assert token.balance_of(ALICE) == 300
        assert token.history[-1].amount == 300

    def test_transfer_insufficient_balance(self, token):
        success, error = token.transfer(ALICE, OWNER, 1)
        assert not success
        assert "Insufficient balance" in error
        assert token.balance_of(OWNER) == 10_000

    def test_transfer_negative_amount_rejected(self, token):
        success, _ = token.transfer(OWNER, ALICE, -5)
        assert not success
        assert token.balance_of(ALICE) == 0

    def test_transfer_from_requires_allowance(self, token):
        success, error = token.transfer_from(SPENDER, OWNER, ALICE, 100)
        assert not success
        assert "allowance" in error
        assert token.balance_of(ALICE) == 0

    def test_transfer_from_consumes_allowance(self, token):
        token.approve(OWNER, SPENDER, 150)
        success, error = token.transfer_from(SPENDER, OWNER, ALICE, 100)
        assert success, error
        assert token.allowance(OWNER, SPENDER) == 50
        assert token.balance_of(ALICE) == 100
        assert token.history[-1].spender == SPENDER

    def test_transfer_from_insufficient_balance_keeps_allowance(self, token):
        token.approve(ALICE, SPENDER, 100)
        success, _ = token.transfer_from(SPENDER, ALICE, OWNER, 100)
        assert not success
        assert token.allowance(ALICE, SPENDER) == 100

    def test_approve_overwrites(self, token):
        token.approve(OWNER, SPENDER, 100)
        token.approve(OWNER, SPENDER, 7)
        assert token.allowance(OWNER, SPENDER) == 7

    def test_receipt_ids_unique(self, token):
        token.transfer(OWNER, ALICE, 1)
        token.transfer(OWNER, ALICE, 1)
        ids = [record.tx_id for record in token.history]
        assert len(ids) == len(set(ids))
        assert all(tx_id.startswith("0x") and len(tx_id) == 66 for tx_id in ids)


class TestMint:
    """Tests for minting."""

    def test_owner_can_mint(self, token):
        success, error = token.mint(OWNER, ALICE, 500)
        assert success, error
        assert token.total_supply == 10_500
        assert token.balance_of(ALICE) == 500

    def test_non_owner_cannot_mint(self, token):
        success, error = token.mint(ALICE, ALICE, 500)
        assert not success
        assert token.total_supply == 10_000


class TestSnapshot:
    """Tests for rollback support."""

    def test_restore_undoes_transfers(self, token):
        token.approve(OWNER, SPENDER, 1_000)
        snapshot = token.snapshot()

        token.transfer_from(SPENDER, OWNER, ALICE, 400)
        token.mint(OWNER, ALICE, 10)
        token.restore(snapshot)

        assert token.balance_of(OWNER) == 10_000
        assert token.balance_of(ALICE) == 0
        assert token.allowance(OWNER, SPENDER) == 1_000
        assert token.total_supply == 10_000
        assert len(token.history) == snapshot.history_length

    def test_snapshot_is_a_copy(self, token):
        snapshot = token.snapshot()
        token.transfer(OWNER, ALICE, 1)
        assert snapshot.balances[OWNER] == 10_000


class TestSerialization:
    """Tests for to_dict / from_dict."""

    def test_dict_preserves_state(self, token):
        token.transfer(OWNER, ALICE, 250)
        token.approve(ALICE, SPENDER, 99)

        restored = TokenLedger.from_dict(token.to_dict())

        assert restored.address == token.address
        assert restored.symbol == "TBL"
        assert restored.balance_of(ALICE) == 250
        assert restored.allowance(ALICE, SPENDER) == 99
        assert restored.total_supply == token.total_supply
        assert restored.initial_supply == 10_000
        assert [r.tx_id for r in restored.history] == [r.tx_id for r in token.history]

    def test_large_amounts_survive_as_strings(self):
        big = 10**30
        token = TokenLedger(TOKEN_ADDRESS, "Big", "BIG", OWNER, initial_supply=big)
        data = token.to_dict()
        assert data["balances"][OWNER] == str(big)
        assert TokenLedger.from_dict(data).balance_of(OWNER) == big


# =============================================================================
# Registry Tests
# =============================================================================


class TestAssetRegistry:
    """Tests for asset lookup."""

    def test_register_and_get(self, token):
        registry = AssetRegistry()
        registry.register(token)
        assert registry.get(TOKEN_ADDRESS) is token
        assert TOKEN_ADDRESS in registry
        assert len(registry) == 1

    def test_unknown_asset(self):
        with pytest.raises(KeyError):
            AssetRegistry().get(TOKEN_ADDRESS)

    def test_duplicate_registration(self, token):
        registry = AssetRegistry()
        registry.register(token)
        with pytest.raises(ValueError):
            registry.register(token)


# =============================================================================
# Units Tests
# =============================================================================


class TestUnits:
    """Tests for display/base unit conversion."""

    def test_parse_units(self):
        assert parse_units("1.0") == 10**18
        assert parse_units("0.00005") == 5 * 10**13
        assert parse_units(1_000_000) == 10**24
        assert parse_units("12", decimals=0) == 12

    def test_parse_units_rejects_bad_input(self):
        with pytest.raises(ValueError):
            parse_units("-1")
        with pytest.raises(ValueError):
            parse_units("abc")
        with pytest.raises(ValueError):
            parse_units("0.001", decimals=2)

    def test_format_units(self):
        assert format_units(10**18) == "1.0"
        assert format_units(999_970 * 10**12) == "0.99997"
        assert format_units(0) == "0.0"
        assert format_units(42, decimals=0) == "42"
