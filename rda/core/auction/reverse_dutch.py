"""
Reverse Dutch Auction - descending-price sale of an escrowed lot.

This module implements the auction lifecycle:
1. Funding: the seller deposits the lot into escrow (any number of times)
2. Sale: the first buyer to accept pays the current price and takes the
   whole lot
3. Close: once the window has elapsed unsold, anyone may finalize and the
   lot goes back to the seller

State machine:

    OPEN --buy--> SOLD
    OPEN --finalize--> CLOSED

SOLD and CLOSED are terminal; every entry point rejects them with
AlreadyTerminal. An entry point either completes fully or raises and
leaves escrow, status and all ledgers untouched.

The host serializes calls on one instance; nothing here locks.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, List, Optional

from rda.core.auction.custody import Custody
from rda.core.auction.errors import (
    AlreadyTerminal,
    AuctionError,
    InvalidArgument,
    NothingToSell,
    TransferFailed,
    Unauthorized,
    WindowExpired,
    WindowStillActive,
)
from rda.core.auction.events import AuctionClosed, DepositAccepted, SaleCompleted
from rda.core.auction.pricing import compute_price, is_expired, window_end
from rda.core.clock import Clock, SystemClock
from rda.utils.logger import get_logger
from rda.utils.validation import (
    validate_amount,
    validate_identity,
    validate_positive_amount,
    validate_timestamp,
)

logger = get_logger("auction")


# =============================================================================
# Enums
# =============================================================================


class AuctionStatus(IntEnum):
    """Lifecycle of a reverse Dutch auction."""
    OPEN = 0     # Accepting deposits and purchases
    SOLD = 1     # Lot delivered to a buyer
    CLOSED = 2   # Window elapsed, unsold lot returned to seller

    @property
    def is_terminal(self) -> bool:
        return self != AuctionStatus.OPEN


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class AuctionConfig:
    """
    Immutable auction parameters, fixed at creation.

    Attributes:
        sale_asset: Asset being sold
        payment_asset: Asset accepted as payment (may equal sale_asset)
        seller: Only identity allowed to deposit; receives payment and
            any unsold lot
        starting_price: Price of the whole lot at start_time
        price_decrease_per_second: Linear decay rate
        start_time: Unix time the window opens
        duration: Window length in seconds
    """
    sale_asset: str
    payment_asset: str
    seller: str
    starting_price: int
    price_decrease_per_second: int
    start_time: int
    duration: int

    def __post_init__(self):
        for name in ("sale_asset", "payment_asset", "seller"):
            is_valid, error = validate_identity(getattr(self, name), name)
            if not is_valid:
                raise InvalidArgument(error)
        for name in ("starting_price", "price_decrease_per_second"):
            is_valid, error = validate_amount(getattr(self, name), name)
            if not is_valid:
                raise InvalidArgument(error)
        for name in ("start_time", "duration"):
            is_valid, error = validate_timestamp(getattr(self, name), name)
            if not is_valid:
                raise InvalidArgument(error)

    @property
    def end_time(self) -> int:
        """First second at which the window is expired."""
        return window_end(self.start_time, self.duration)

    def price_at(self, now: int) -> int:
        return compute_price(
            self.starting_price,
            self.price_decrease_per_second,
            self.start_time,
            self.duration,
            now,
        )

    def to_dict(self) -> dict:
        return {
            "sale_asset": self.sale_asset,
            "payment_asset": self.payment_asset,
            "seller": self.seller,
            "starting_price": str(self.starting_price),
            "price_decrease_per_second": str(self.price_decrease_per_second),
            "start_time": self.start_time,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuctionConfig":
        return cls(
            sale_asset=data["sale_asset"],
            payment_asset=data["payment_asset"],
            seller=data["seller"],
            starting_price=int(data["starting_price"]),
            price_decrease_per_second=int(data["price_decrease_per_second"]),
            start_time=int(data["start_time"]),
            duration=int(data["duration"]),
        )


@dataclass(frozen=True)
class SaleRecord:
    """Outcome of a successful purchase."""
    buyer: str
    price: int
    amount: int
    timestamp: int

    def to_dict(self) -> dict:
        return {
            "buyer": self.buyer,
            "price": str(self.price),
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SaleRecord":
        return cls(
            buyer=data["buyer"],
            price=int(data["price"]),
            amount=int(data["amount"]),
            timestamp=int(data["timestamp"]),
        )


@dataclass
class AuctionState:
    """Mutable auction state."""
    escrowed_amount: int = 0
    status: AuctionStatus = AuctionStatus.OPEN
    sale: Optional[SaleRecord] = None


Listener = Callable[[object], None]


# =============================================================================
# Reverse Dutch Auction
# =============================================================================


class ReverseDutchAuction:
    """
    A single reverse Dutch auction over one escrowed lot.

    Attributes:
        config: Immutable parameters
        state: Escrow amount, status and sale record
        custody: Escrow account adapter used for every asset movement
        clock: Time source used when an entry point gets no explicit `now`
    """

    def __init__(
        self,
        config: AuctionConfig,
        custody: Custody,
        clock: Optional[Clock] = None,
        state: Optional[AuctionState] = None,
    ):
        # Both assets must be resolvable before the auction accepts calls
        custody.ledger(config.sale_asset)
        custody.ledger(config.payment_asset)

        self.config = config
        self.custody = custody
        self.clock = clock or SystemClock()
        self.state = state or AuctionState()
        self._listeners: List[Listener] = []

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def address(self) -> str:
        """Identity of the auction on the asset ledgers."""
        return self.custody.escrow_account

    @property
    def seller(self) -> str:
        return self.config.seller

    @property
    def status(self) -> AuctionStatus:
        return self.state.status

    @property
    def escrowed_amount(self) -> int:
        return self.state.escrowed_amount

    @property
    def sale(self) -> Optional[SaleRecord]:
        return self.state.sale

    @property
    def window_end(self) -> int:
        return self.config.end_time

    @property
    def is_ended(self) -> bool:
        """True once sold or closed."""
        return self.state.status.is_terminal

    def current_price(self, now: Optional[int] = None) -> int:
        """Price of the whole lot at `now` (defaults to the clock)."""
        return self.config.price_at(self._resolve_now(now))

    def time_remaining(self, now: Optional[int] = None) -> int:
        """Seconds left in the window, 0 once expired."""
        return max(0, self.config.end_time - self._resolve_now(now))

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(self, listener: Listener) -> None:
        """Register a callable that receives every notification."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, event: object) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # Listeners observe; a failing one cannot undo a committed transition
                logger.exception(f"Listener {listener!r} failed on {type(event).__name__}")

    # =========================================================================
    # Entry Points
    # =========================================================================

    def deposit(self, amount: int, caller: str, now: Optional[int] = None) -> int:
        """
        Add `amount` of the sale asset to escrow.

        The seller must have approved the auction for at least `amount`.

        Args:
            amount: Base units to deposit (> 0)
            caller: Identity making the call
            now: Current time; read from the clock if omitted

        Returns:
            New escrowed amount

        Raises:
            Unauthorized, AlreadyTerminal, InvalidArgument, TransferFailed
        """
        now = self._resolve_now(now)
        if caller != self.config.seller:
            raise self._reject(Unauthorized(f"Only the seller can deposit, got {caller}"))
        self._require_open("deposit")
        is_valid, error = validate_positive_amount(amount)
        if not is_valid:
            raise self._reject(InvalidArgument(error))

        success, reason = self.custody.pull(self.config.sale_asset, caller, amount)
        if not success:
            raise self._reject(TransferFailed("Deposit transfer declined", reason))

        self.state.escrowed_amount += amount
        logger.info(f"Deposit accepted: {amount} (escrow now {self.state.escrowed_amount})")
        self._emit(DepositAccepted(amount=amount, escrowed_amount=self.state.escrowed_amount, timestamp=now))
        return self.state.escrowed_amount

    def buy(self, caller: str, now: Optional[int] = None) -> SaleRecord:
        """
        Buy the whole escrowed lot at the current price.

        The buyer must have approved the auction for at least the current
        price of the payment asset. Payment to the seller happens first;
        the lot is released only after payment succeeded, and both are
        undone if the release fails.

        Args:
            caller: Buyer identity
            now: Current time; read from the clock if omitted

        Returns:
            SaleRecord with the price paid and amount received

        Raises:
            AlreadyTerminal, WindowExpired, NothingToSell,
            PaymentFailed, SettlementFailed
        """
        now = self._resolve_now(now)
        is_valid, error = validate_identity(caller, "caller")
        if not is_valid:
            raise self._reject(InvalidArgument(error))
        self._require_open("buy")

        config = self.config
        if is_expired(config.start_time, config.duration, now):
            raise self._reject(WindowExpired("Auction has expired."))

        price = config.price_at(now)
        if price == 0:
            raise self._reject(WindowExpired("Price has decayed to zero."))

        lot = self.state.escrowed_amount
        if lot == 0:
            raise self._reject(NothingToSell("No tokens in escrow."))

        try:
            with self.custody.settlement() as settlement:
                settlement.pay(config.payment_asset, caller, config.seller, price)
                settlement.release(config.sale_asset, caller, lot)
        except AuctionError as exc:
            raise self._reject(exc)

        sale = SaleRecord(buyer=caller, price=price, amount=lot, timestamp=now)
        self.state.escrowed_amount = 0
        self.state.status = AuctionStatus.SOLD
        self.state.sale = sale

        logger.info(f"Sale completed: {caller[:10]}... paid {price} for {lot}")
        self._emit(SaleCompleted(buyer=caller, price=price, amount=lot, timestamp=now))
        return sale

    def finalize(self, caller: str, now: Optional[int] = None) -> int:
        """
        Close an expired, unsold auction and return the lot to the seller.

        Anyone may call this once the window has elapsed.

        Args:
            caller: Identity making the call (not checked)
            now: Current time; read from the clock if omitted

        Returns:
            Amount returned to the seller

        Raises:
            AlreadyTerminal, InvalidArgument, WindowStillActive, TransferFailed
        """
        now = self._resolve_now(now)
        self._require_open("finalize")
        is_valid, error = validate_identity(caller, "caller")
        if not is_valid:
            raise self._reject(InvalidArgument(error))

        config = self.config
        if not is_expired(config.start_time, config.duration, now):
            remaining = config.end_time - now
            raise self._reject(WindowStillActive(f"Auction still active for {remaining}s."))

        returned = self.state.escrowed_amount
        if returned > 0:
            success, reason = self.custody.release(config.sale_asset, config.seller, returned)
            if not success:
                raise self._reject(TransferFailed("Return to seller declined", reason))

        self.state.escrowed_amount = 0
        self.state.status = AuctionStatus.CLOSED

        logger.info(f"Auction closed by {caller[:10]}...: returned {returned} to seller")
        self._emit(AuctionClosed(returned_amount=returned, timestamp=now))
        return returned

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve_now(self, now: Optional[int]) -> int:
        if now is None:
            return self.clock.now()
        is_valid, error = validate_timestamp(now, "now")
        if not is_valid:
            raise InvalidArgument(error)
        return now

    def _require_open(self, operation: str) -> None:
        status = self.state.status
        if status == AuctionStatus.OPEN:
            return
        if status == AuctionStatus.SOLD:
            raise self._reject(AlreadyTerminal(f"Cannot {operation}: auction already sold."))
        if status == AuctionStatus.CLOSED:
            raise self._reject(AlreadyTerminal(f"Cannot {operation}: auction already closed."))
        raise AssertionError(f"Unknown auction status: {status!r}")

    def _reject(self, error: AuctionError) -> AuctionError:
        logger.warning(f"Rejected: {type(error).__name__}: {error}")
        return error

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        """JSON-friendly representation of config and state."""
        return {
            "address": self.address,
            "config": self.config.to_dict(),
            "state": {
                "escrowed_amount": str(self.state.escrowed_amount),
                "status": self.state.status.name,
                "sale": self.state.sale.to_dict() if self.state.sale else None,
            },
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        custody: Custody,
        clock: Optional[Clock] = None,
    ) -> "ReverseDutchAuction":
        state_data = data["state"]
        sale = state_data.get("sale")
        state = AuctionState(
            escrowed_amount=int(state_data["escrowed_amount"]),
            status=AuctionStatus[state_data["status"]],
            sale=SaleRecord.from_dict(sale) if sale else None,
        )
        return cls(AuctionConfig.from_dict(data["config"]), custody, clock=clock, state=state)

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return (
            f"ReverseDutchAuction(status={self.state.status.name}, "
            f"escrow={self.state.escrowed_amount}, start_price={self.config.starting_price})"
        )

    def stats(self, now: Optional[int] = None) -> dict:
        """Snapshot of the values an observer usually wants."""
        now = self._resolve_now(now)
        return {
            "status": self.state.status.name,
            "seller": self.config.seller,
            "starting_price": self.config.starting_price,
            "current_price": self.config.price_at(now),
            "start_time": self.config.start_time,
            "end_time": self.config.end_time,
            "time_remaining": max(0, self.config.end_time - now),
            "escrowed_amount": self.state.escrowed_amount,
            "ended": self.is_ended,
        }


__all__ = [
    "ReverseDutchAuction",
    "AuctionConfig",
    "AuctionState",
    "AuctionStatus",
    "SaleRecord",
]
