"""
Unit tests for cryptographic primitives.

Tests cover:
1. Key generation
2. Hashing functions
3. Account and instance address derivation
4. Hex helpers
"""

import pytest

from rda.crypto import (
    generate_keypair,
    keypair_from_private_key,
    private_key_to_public_key,
    address_from_public_key,
    instance_address,
    keccak256,
    bytes_to_hex,
    hex_to_bytes,
    is_valid_address,
)


DEPLOYER = "0x" + "11" * 20


class TestKeyGeneration:
    """Tests for key generation."""

    def test_keypair_generation_produces_valid_lengths(self):
        """KeyPair should have correct field lengths."""
        kp = generate_keypair()
        assert len(kp.private_key) == 32
        assert len(kp.public_key) == 64

    def test_keypair_address_format(self):
        """Address should be 0x-prefixed 40 hex chars."""
        kp = generate_keypair()
        assert kp.address.startswith("0x")
        assert len(kp.address) == 42
        assert is_valid_address(kp.address)

    def test_keypairs_are_unique(self):
        kp1 = generate_keypair()
        kp2 = generate_keypair()
        assert kp1.private_key != kp2.private_key
        assert kp1.address != kp2.address

    def test_derive_public_key_from_private(self):
        kp = generate_keypair()
        assert private_key_to_public_key(kp.private_key) == kp.public_key

    def test_keypair_from_private_key(self):
        kp = generate_keypair()
        assert keypair_from_private_key(kp.private_key).address == kp.address

    def test_short_private_key_rejected(self):
        with pytest.raises(ValueError):
            private_key_to_public_key(b"\x01" * 31)


class TestHashing:
    """Tests for hash functions."""

    def test_keccak256_known_vector(self):
        """Keccak-256, not NIST SHA3-256."""
        assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


class TestAddresses:
    """Tests for address derivation."""

    def test_address_from_public_key_wrong_length(self):
        with pytest.raises(ValueError):
            address_from_public_key(b"\x00" * 33)

    def test_instance_address_deterministic(self):
        assert instance_address(DEPLOYER, 0) == instance_address(DEPLOYER, 0)
        assert is_valid_address(instance_address(DEPLOYER, 0))

    def test_instance_address_depends_on_nonce(self):
        assert instance_address(DEPLOYER, 0) != instance_address(DEPLOYER, 1)

    def test_instance_address_depends_on_deployer(self):
        other = "0x" + "22" * 20
        assert instance_address(DEPLOYER, 0) != instance_address(other, 0)

    def test_instance_address_rejects_bad_input(self):
        with pytest.raises(ValueError):
            instance_address("not-an-address", 0)
        with pytest.raises(ValueError):
            instance_address(DEPLOYER, -1)

    @pytest.mark.parametrize("value, expected", [
        ("0x" + "ab" * 20, True),
        ("0x" + "AB" * 20, True),
        ("ab" * 20, False),
        ("0x" + "ab" * 19, False),
        ("0x" + "zz" * 20, False),
        (None, False),
    ])
    def test_is_valid_address(self, value, expected):
        assert is_valid_address(value) is expected


class TestHex:
    """Tests for hex conversion helpers."""

    def test_bytes_to_hex(self):
        assert bytes_to_hex(b"\x01\xff") == "0x01ff"

    def test_hex_to_bytes_accepts_prefix(self):
        assert hex_to_bytes("0x01ff") == b"\x01\xff"
        assert hex_to_bytes("01ff") == b"\x01\xff"
