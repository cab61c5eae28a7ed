"""
Token Ledger - in-memory fungible token with allowances.

Conceptual Background:
---------------------
The ledger follows the ERC-20 account model:

1. **Balances**: holder -> amount, in integer base units
2. **Allowances**: (owner, spender) -> amount the spender may move
3. **Supply**: minted once to the owner at creation, extendable by the owner

Operations never raise for business failures (insufficient balance or
allowance); they return (success, error_message) and leave state
untouched on failure, the way a reverted token call would.

Snapshot:
--------
snapshot()/restore() capture and reinstate balances, allowances, supply
and history length. The auction's settlement uses them to undo a
payment when the second leg of a sale fails.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from rda.crypto import keccak256, bytes_to_hex
from rda.core.ledger.units import DEFAULT_DECIMALS, format_units
from rda.utils.logger import get_logger
from rda.utils.validation import (
    MAX_UINT256,
    validate_amount,
    validate_identity,
)

logger = get_logger("ledger")


# =============================================================================
# Records
# =============================================================================


@dataclass
class TransferRecord:
    """
    A completed balance movement.

    Attributes:
        tx_id: Keccak-256 receipt id (hex)
        sender: Account debited ("" for mints)
        recipient: Account credited
        amount: Base units moved
        spender: Account that moved the funds via allowance, if any
    """
    tx_id: str
    sender: str
    recipient: str
    amount: int
    spender: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "tx_id": self.tx_id,
            "sender": self.sender,
            "recipient": self.recipient,
            "amount": str(self.amount),
            "spender": self.spender,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TransferRecord":
        return cls(
            tx_id=data["tx_id"],
            sender=data["sender"],
            recipient=data["recipient"],
            amount=int(data["amount"]),
            spender=data.get("spender"),
        )


@dataclass
class TokenSnapshot:
    """Copy of mutable ledger state for rollback."""
    balances: Dict[str, int]
    allowances: Dict[Tuple[str, str], int]
    total_supply: int
    history_length: int


# =============================================================================
# Token Ledger
# =============================================================================


class TokenLedger:
    """
    Fungible token ledger.

    Attributes:
        address: Asset identifier of this token
        name: Human readable name (e.g. "Turbulence")
        symbol: Ticker (e.g. "TBL")
        decimals: Fractional digits for display
        owner: Account that received the initial supply and may mint
    """

    def __init__(
        self,
        address: str,
        name: str,
        symbol: str,
        owner: str,
        initial_supply: int = 0,
        decimals: int = DEFAULT_DECIMALS,
    ):
        for value, label in ((address, "address"), (owner, "owner")):
            is_valid, error = validate_identity(value, label)
            if not is_valid:
                raise ValueError(error)
        is_valid, error = validate_amount(initial_supply, "initial_supply")
        if not is_valid:
            raise ValueError(error)

        self._address = address
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.owner = owner
        self.initial_supply = initial_supply

        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}
        self.history: List[TransferRecord] = []
        self._total_supply = 0

        if initial_supply:
            self._credit("", owner, initial_supply)

        logger.debug(f"Token {symbol} at {address[:10]}... supply={initial_supply} owner={owner[:10]}...")

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def address(self) -> str:
        return self._address

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        """Get balance for an account (0 if unknown)."""
        return self.balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Amount `spender` may still move out of `owner`'s balance."""
        return self.allowances.get((owner, spender), 0)

    def format(self, amount: int) -> str:
        """Render base units as a display string with the symbol."""
        return f"{format_units(amount, self.decimals)} {self.symbol}"

    # =========================================================================
    # Operations
    # =========================================================================

    def approve(self, owner: str, spender: str, amount: int) -> Tuple[bool, str]:
        """
        Set the allowance of `spender` over `owner`'s tokens.

        Overwrites any previous allowance, as ERC-20 approve does.
        """
        is_valid, error = validate_amount(amount)
        if not is_valid:
            return False, error
        is_valid, error = validate_identity(spender, "spender")
        if not is_valid:
            return False, error

        self.allowances[(owner, spender)] = amount
        logger.debug(f"{self.symbol}: {owner[:10]}... approved {amount} to {spender[:10]}...")
        return True, ""

    def transfer(self, sender: str, recipient: str, amount: int) -> Tuple[bool, str]:
        """
        Move tokens out of the sender's own balance.

        Returns:
            (success, error_message)
        """
        is_valid, error = self._check_transfer(sender, recipient, amount)
        if not is_valid:
            return False, error

        self._move(sender, recipient, amount)
        return True, ""

    def transfer_from(
        self,
        spender: str,
        owner: str,
        recipient: str,
        amount: int,
    ) -> Tuple[bool, str]:
        """
        Move tokens from `owner` to `recipient` using `spender`'s allowance.

        Returns:
            (success, error_message)
        """
        is_valid, error = self._check_transfer(owner, recipient, amount)
        if not is_valid:
            return False, error

        allowed = self.allowance(owner, spender)
        if allowed < amount:
            return False, f"Insufficient allowance: {allowed} < {amount}"

        self.allowances[(owner, spender)] = allowed - amount
        self._move(owner, recipient, amount, spender=spender)
        return True, ""

    def mint(self, caller: str, recipient: str, amount: int) -> Tuple[bool, str]:
        """Create new tokens. Only the owner may mint."""
        if caller != self.owner:
            return False, "Only the owner can mint"
        is_valid, error = validate_amount(amount)
        if not is_valid:
            return False, error
        is_valid, error = validate_identity(recipient, "recipient")
        if not is_valid:
            return False, error
        if self._total_supply + amount > MAX_UINT256:
            return False, "Total supply overflow"

        self._credit("", recipient, amount)
        logger.info(f"{self.symbol}: minted {amount} to {recipient[:10]}...")
        return True, ""

    # =========================================================================
    # Rollback
    # =========================================================================

    def snapshot(self) -> TokenSnapshot:
        """Capture current balances, allowances and supply."""
        return TokenSnapshot(
            balances=dict(self.balances),
            allowances=dict(self.allowances),
            total_supply=self._total_supply,
            history_length=len(self.history),
        )

    def restore(self, snapshot: TokenSnapshot) -> None:
        """Reinstate a snapshot, discarding every later transfer."""
        self.balances = dict(snapshot.balances)
        self.allowances = dict(snapshot.allowances)
        self._total_supply = snapshot.total_supply
        del self.history[snapshot.history_length:]
        logger.debug(f"{self.symbol}: restored snapshot at history={snapshot.history_length}")

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_transfer(self, sender: str, recipient: str, amount: int) -> Tuple[bool, str]:
        is_valid, error = validate_amount(amount)
        if not is_valid:
            return False, error
        is_valid, error = validate_identity(recipient, "recipient")
        if not is_valid:
            return False, error

        balance = self.balance_of(sender)
        if balance < amount:
            return False, f"Insufficient balance: {balance} < {amount}"
        return True, ""

    def _move(self, sender: str, recipient: str, amount: int, spender: Optional[str] = None) -> None:
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        record = self._record(sender, recipient, amount, spender)
        logger.debug(
            f"{self.symbol}: {amount} {sender[:10]}... -> {recipient[:10]}... "
            f"(tx {record.tx_id[:10]}...)"
        )

    def _credit(self, sender: str, recipient: str, amount: int) -> None:
        self.balances[recipient] = self.balance_of(recipient) + amount
        self._total_supply += amount
        self._record(sender, recipient, amount, None)

    def _record(self, sender: str, recipient: str, amount: int, spender: Optional[str]) -> TransferRecord:
        nonce = len(self.history)
        preimage = "|".join((self._address, sender, recipient, str(amount), str(nonce))).encode()
        record = TransferRecord(
            tx_id=bytes_to_hex(keccak256(preimage)),
            sender=sender,
            recipient=recipient,
            amount=amount,
            spender=spender,
        )
        self.history.append(record)
        return record

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        """JSON-friendly representation. Amounts are stored as strings."""
        return {
            "address": self._address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "owner": self.owner,
            "initial_supply": str(self.initial_supply),
            "total_supply": str(self._total_supply),
            "balances": {holder: str(value) for holder, value in self.balances.items()},
            "allowances": [
                {"owner": owner, "spender": spender, "amount": str(value)}
                for (owner, spender), value in self.allowances.items()
            ],
            "history": [record.to_dict() for record in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TokenLedger":
        ledger = cls(
            address=data["address"],
            name=data["name"],
            symbol=data["symbol"],
            owner=data["owner"],
            decimals=data.get("decimals", DEFAULT_DECIMALS),
        )
        ledger.balances = {holder: int(value) for holder, value in data["balances"].items()}
        ledger.allowances = {
            (entry["owner"], entry["spender"]): int(entry["amount"])
            for entry in data.get("allowances", [])
        }
        ledger.initial_supply = int(data.get("initial_supply", 0))
        ledger._total_supply = int(data["total_supply"])
        ledger.history = [TransferRecord.from_dict(entry) for entry in data.get("history", [])]
        return ledger

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return f"TokenLedger({self.symbol}, supply={self._total_supply}, holders={len(self.balances)})"

    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "address": self._address,
            "symbol": self.symbol,
            "total_supply": self._total_supply,
            "holder_count": sum(1 for value in self.balances.values() if value > 0),
            "transfer_count": len(self.history),
        }
