"""
Asset Ledger interface.

The auction only needs three operations from whatever holds balances for
an asset, plus a snapshot/restore pair so a multi-step settlement can be
undone. Every call names the acting identity explicitly; there is no
ambient "message sender".
"""

from typing import Any, Protocol, Tuple, runtime_checkable


@runtime_checkable
class AssetLedger(Protocol):
    """Balance keeper for one fungible asset."""

    @property
    def address(self) -> str:
        """Identifier of the asset this ledger tracks."""
        ...

    def transfer_from(
        self,
        spender: str,
        owner: str,
        recipient: str,
        amount: int,
    ) -> Tuple[bool, str]:
        """
        Move `amount` from `owner` to `recipient` on behalf of `spender`.

        Requires `owner` to have approved at least `amount` to `spender`.
        Fails without partial effect.
        """
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> Tuple[bool, str]:
        """Move `amount` out of `sender`'s own balance."""
        ...

    def balance_of(self, holder: str) -> int:
        ...

    def snapshot(self) -> Any:
        """Capture enough state to undo later transfers."""
        ...

    def restore(self, snapshot: Any) -> None:
        """Return to a state captured by snapshot()."""
        ...
