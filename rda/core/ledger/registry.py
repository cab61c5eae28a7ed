"""
Asset Registry - lookup of asset ledgers by asset identifier.
"""

from typing import Dict, Iterator

from rda.core.ledger.asset import AssetLedger
from rda.utils.logger import get_logger

logger = get_logger("registry")


class AssetRegistry:
    """Maps asset identifiers to the ledger that keeps their balances."""

    def __init__(self):
        self._ledgers: Dict[str, AssetLedger] = {}

    def register(self, ledger: AssetLedger) -> None:
        """Register a ledger under its own address."""
        if ledger.address in self._ledgers:
            raise ValueError(f"Asset already registered: {ledger.address}")
        self._ledgers[ledger.address] = ledger
        logger.debug(f"Registered asset {ledger.address[:10]}...")

    def get(self, asset_id: str) -> AssetLedger:
        """
        Get the ledger for an asset.

        Raises:
            KeyError: if the asset is unknown
        """
        try:
            return self._ledgers[asset_id]
        except KeyError:
            raise KeyError(f"Unknown asset: {asset_id}") from None

    def __contains__(self, asset_id: str) -> bool:
        return asset_id in self._ledgers

    def __iter__(self) -> Iterator[AssetLedger]:
        return iter(self._ledgers.values())

    def __len__(self) -> int:
        return len(self._ledgers)

    def __repr__(self) -> str:
        return f"AssetRegistry(assets={len(self._ledgers)})"
