"""
RDA Auction Module.

This module provides the reverse Dutch auction:
- Linear price decay
- Auction state machine (deposit, buy, finalize)
- Escrow custody and all-or-nothing settlement
- Error taxonomy and notifications
"""

from rda.core.auction.pricing import (
    compute_price,
    price_decrease,
    elapsed_seconds,
    window_end,
    is_expired,
)

from rda.core.auction.errors import (
    AuctionError,
    Unauthorized,
    InvalidArgument,
    AlreadyTerminal,
    WindowExpired,
    WindowStillActive,
    NothingToSell,
    LedgerError,
    PaymentFailed,
    TransferFailed,
    SettlementFailed,
)

from rda.core.auction.events import (
    DepositAccepted,
    SaleCompleted,
    AuctionClosed,
)

from rda.core.auction.custody import Custody, Settlement

from rda.core.auction.reverse_dutch import (
    ReverseDutchAuction,
    AuctionConfig,
    AuctionState,
    AuctionStatus,
    SaleRecord,
)

__all__ = [
    # Pricing
    "compute_price",
    "price_decrease",
    "elapsed_seconds",
    "window_end",
    "is_expired",
    # Errors
    "AuctionError",
    "Unauthorized",
    "InvalidArgument",
    "AlreadyTerminal",
    "WindowExpired",
    "WindowStillActive",
    "NothingToSell",
    "LedgerError",
    "PaymentFailed",
    "TransferFailed",
    "SettlementFailed",
    # Notifications
    "DepositAccepted",
    "SaleCompleted",
    "AuctionClosed",
    # Custody
    "Custody",
    "Settlement",
    # State machine
    "ReverseDutchAuction",
    "AuctionConfig",
    "AuctionState",
    "AuctionStatus",
    "SaleRecord",
]
