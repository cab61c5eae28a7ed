"""
Cryptographic primitives for RDA.

This module provides:
- Keccak-256 hashing
- Key generation for local accounts (secp256k1)
- Ethereum-style address derivation for accounts and deployed instances

Design Notes:
-------------
Accounts are identified by 0x-prefixed 20-byte addresses, the last 20
bytes of keccak256(public_key). Deployed token and auction instances get
addresses derived from the deployer address and a nonce, the way EVM
contract addresses are derived (without RLP encoding).
"""

import secrets
from dataclasses import dataclass

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Constants
# =============================================================================

# secp256k1 curve order (number of points on the curve)
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

ADDRESS_SIZE = 20


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: address derivation, transfer receipt ids.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Key Generation
# =============================================================================


@dataclass
class KeyPair:
    """
    An ECDSA keypair on secp256k1.

    Attributes:
        private_key: 32-byte secret key (integer in [1, order-1])
        public_key: 64-byte uncompressed public key (x || y coordinates)
    """
    private_key: bytes  # 32 bytes
    public_key: bytes   # 64 bytes (uncompressed, no 0x04 prefix)

    @property
    def address(self) -> str:
        """
        Derive address from public key (Ethereum-style).

        Address = last 20 bytes of keccak256(public_key), hex-encoded with 0x prefix.
        """
        return address_from_public_key(self.public_key)

    @property
    def private_key_hex(self) -> str:
        """Return private key as hex string."""
        return self.private_key.hex()

    @property
    def public_key_hex(self) -> str:
        """Return public key as hex string."""
        return self.public_key.hex()


def private_key_to_public_key(private_key: bytes) -> bytes:
    """
    Derive public key from private key.

    Args:
        private_key: 32-byte private key

    Returns:
        64-byte uncompressed public key
    """
    if len(private_key) != 32:
        raise ValueError("Private key must be 32 bytes")

    # privtopub returns the (x, y) point as integers
    public_key_point = secp256k1.privtopub(private_key)
    x_bytes = public_key_point[0].to_bytes(32, byteorder="big")
    y_bytes = public_key_point[1].to_bytes(32, byteorder="big")
    return x_bytes + y_bytes


def generate_keypair() -> KeyPair:
    """
    Generate a new random keypair.

    Uses cryptographically secure random number generator.
    """
    private_key_int = secrets.randbelow(SECP256K1_ORDER - 1) + 1
    private_key = private_key_int.to_bytes(32, byteorder="big")
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


def keypair_from_private_key(private_key: bytes) -> KeyPair:
    """Rebuild a keypair from a stored private key."""
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


# =============================================================================
# Addresses
# =============================================================================


def address_from_public_key(public_key: bytes) -> str:
    """
    Derive address from public key (Ethereum-style).

    address = keccak256(public_key)[-20:]

    Args:
        public_key: 64-byte public key

    Returns:
        0x-prefixed hex address
    """
    if len(public_key) != 64:
        raise ValueError("Public key must be 64 bytes")
    return bytes_to_hex(keccak256(public_key)[-ADDRESS_SIZE:])


def instance_address(deployer: str, nonce: int) -> str:
    """
    Derive the address of an instance created by `deployer`.

    address = keccak256(deployer_bytes || nonce_be8)[-20:]
    """
    if not is_valid_address(deployer):
        raise ValueError(f"Invalid deployer address: {deployer}")
    if nonce < 0:
        raise ValueError(f"nonce must be non-negative, got {nonce}")
    digest = keccak256(hex_to_bytes(deployer) + nonce.to_bytes(8, byteorder="big"))
    return bytes_to_hex(digest[-ADDRESS_SIZE:])


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def is_valid_address(address: str) -> bool:
    """Check if string is a valid address format."""
    if not isinstance(address, str) or not address.startswith("0x"):
        return False
    if len(address) != 2 + 2 * ADDRESS_SIZE:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False
