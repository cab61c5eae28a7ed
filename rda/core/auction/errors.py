"""
Auction errors.

Every rejected entry-point call raises one of these. A raised error
always means the auction's escrow and status are exactly as they were
before the call.
"""


class AuctionError(RuntimeError):
    """Base class for rejected auction operations."""


class Unauthorized(AuctionError):
    """Caller lacks the identity the operation requires."""


class InvalidArgument(AuctionError, ValueError):
    """Zero, negative or malformed argument."""


class AlreadyTerminal(AuctionError):
    """Auction is already Sold or Closed."""


class WindowExpired(AuctionError):
    """Auction window has elapsed or the price has decayed to zero."""


class WindowStillActive(AuctionError):
    """Auction window has not elapsed yet."""


class NothingToSell(AuctionError):
    """Escrow is empty."""


class LedgerError(AuctionError):
    """An asset ledger declined a transfer."""

    def __init__(self, message: str, reason: str = ""):
        super().__init__(f"{message}: {reason}" if reason else message)
        self.reason = reason


class PaymentFailed(LedgerError):
    """Buyer's payment to the seller was declined."""


class TransferFailed(LedgerError):
    """Deposit into, or return from, escrow was declined."""


class SettlementFailed(LedgerError):
    """Delivery of the escrowed lot to the buyer was declined."""


__all__ = [
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
]
