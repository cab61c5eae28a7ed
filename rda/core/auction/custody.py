"""
Custody - asset movements into and out of an auction's escrow account.

The escrow account is the auction's own identity on every asset ledger:
sellers and buyers approve it as spender, and it holds the lot until the
lot is sold or returned.

Settlement:
----------
A sale moves two assets in sequence (payment to the seller, then the lot
to the buyer). Ledgers give no cross-ledger transactions, so a
Settlement snapshots each ledger the first time it touches it and, if
any later step fails or anything raises inside the block, restores every
snapshot in reverse order:

    with custody.settlement() as settlement:
        settlement.pay(payment_asset, buyer, seller, price)
        settlement.release(sale_asset, buyer, lot)

The block either completes both steps or leaves every ledger as it was.
"""

from typing import Any, Callable, List, Tuple, Type

from rda.core.auction.errors import (
    LedgerError,
    PaymentFailed,
    SettlementFailed,
    TransferFailed,
)
from rda.core.ledger import AssetLedger, AssetRegistry
from rda.utils.logger import get_logger

logger = get_logger("custody")


class Custody:
    """
    Escrow account adapter over an asset registry.

    Attributes:
        registry: Ledgers by asset id
        escrow_account: Identity that holds escrowed assets
    """

    def __init__(self, registry: AssetRegistry, escrow_account: str):
        self.registry = registry
        self.escrow_account = escrow_account

    def ledger(self, asset: str) -> AssetLedger:
        return self.registry.get(asset)

    def balance(self, asset: str) -> int:
        """Amount of `asset` currently held by the escrow account."""
        return self.ledger(asset).balance_of(self.escrow_account)

    def pull(self, asset: str, owner: str, amount: int) -> Tuple[bool, str]:
        """Move `amount` from `owner` into escrow (needs owner's approval)."""
        return self.ledger(asset).transfer_from(self.escrow_account, owner, self.escrow_account, amount)

    def pay(self, asset: str, payer: str, payee: str, amount: int) -> Tuple[bool, str]:
        """Move `amount` from `payer` straight to `payee` (needs payer's approval)."""
        return self.ledger(asset).transfer_from(self.escrow_account, payer, payee, amount)

    def release(self, asset: str, recipient: str, amount: int) -> Tuple[bool, str]:
        """Move `amount` out of escrow to `recipient`."""
        return self.ledger(asset).transfer(self.escrow_account, recipient, amount)

    def settlement(self) -> "Settlement":
        """Open an all-or-nothing group of transfers."""
        return Settlement(self)

    def __repr__(self) -> str:
        return f"Custody(escrow={self.escrow_account[:10]}..., assets={len(self.registry)})"


class Settlement:
    """
    Staged transfers that are rolled back together on failure.

    Use as a context manager. Each step raises its LedgerError subclass
    when the ledger declines; leaving the block with any exception
    restores all touched ledgers.
    """

    def __init__(self, custody: Custody):
        self.custody = custody
        self._snapshots: List[Tuple[AssetLedger, Any]] = []
        self._touched: List[str] = []
        self.completed_steps: List[str] = []
        self.rolled_back = False

    def __enter__(self) -> "Settlement":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
        return False

    # =========================================================================
    # Steps
    # =========================================================================

    def pull(self, asset: str, owner: str, amount: int, error: Type[LedgerError] = TransferFailed) -> None:
        self._run(asset, f"pull {amount} from {owner[:10]}...", error,
                  lambda: self.custody.pull(asset, owner, amount))

    def pay(self, asset: str, payer: str, payee: str, amount: int,
            error: Type[LedgerError] = PaymentFailed) -> None:
        self._run(asset, f"pay {amount} {payer[:10]}... -> {payee[:10]}...", error,
                  lambda: self.custody.pay(asset, payer, payee, amount))

    def release(self, asset: str, recipient: str, amount: int,
                error: Type[LedgerError] = SettlementFailed) -> None:
        self._run(asset, f"release {amount} to {recipient[:10]}...", error,
                  lambda: self.custody.release(asset, recipient, amount))

    # =========================================================================
    # Internals
    # =========================================================================

    def _run(
        self,
        asset: str,
        description: str,
        error: Type[LedgerError],
        operation: Callable[[], Tuple[bool, str]],
    ) -> None:
        self._checkpoint(asset)
        success, reason = operation()
        if not success:
            logger.warning(f"Settlement step failed ({description}): {reason}")
            raise error(f"Could not {description.split(' ')[0]} {asset[:10]}...", reason)
        self.completed_steps.append(description)
        logger.debug(f"Settlement step ok: {description}")

    def _checkpoint(self, asset: str) -> None:
        if asset in self._touched:
            return
        ledger = self.custody.ledger(asset)
        self._snapshots.append((ledger, ledger.snapshot()))
        self._touched.append(asset)

    def rollback(self) -> None:
        """Restore every touched ledger, most recent first."""
        for ledger, snapshot in reversed(self._snapshots):
            ledger.restore(snapshot)
        if self.completed_steps:
            logger.warning(f"Settlement rolled back {len(self.completed_steps)} completed step(s)")
        self._snapshots.clear()
        self.rolled_back = True


__all__ = ["Custody", "Settlement"]
