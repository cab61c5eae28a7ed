"""Asset ledgers: token balances, allowances and registry"""
from rda.core.ledger.asset import AssetLedger
from rda.core.ledger.token import TokenLedger, TokenSnapshot, TransferRecord
from rda.core.ledger.registry import AssetRegistry
from rda.core.ledger.units import DEFAULT_DECIMALS, parse_units, format_units

__all__ = [
    "AssetLedger",
    "TokenLedger",
    "TokenSnapshot",
    "TransferRecord",
    "AssetRegistry",
    "DEFAULT_DECIMALS",
    "parse_units",
    "format_units",
]
