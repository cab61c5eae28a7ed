"""Notifications published by an auction to its subscribers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DepositAccepted:
    """Seller added `amount` to escrow."""
    amount: int
    escrowed_amount: int
    timestamp: int


@dataclass(frozen=True)
class SaleCompleted:
    """`buyer` paid `price` and received the whole lot of `amount`."""
    buyer: str
    price: int
    amount: int
    timestamp: int


@dataclass(frozen=True)
class AuctionClosed:
    """Window expired unsold; `returned_amount` went back to the seller."""
    returned_amount: int
    timestamp: int


__all__ = ["DepositAccepted", "SaleCompleted", "AuctionClosed"]
