from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .errors import InvalidOrder, NotOwner, OrderInactive, TransferFailed, UnknownOrder
from .events import BookEvent, OrderCancelled, OrderCreated, OrdersMatched
from .ledger import AssetLedger
from .matching_engine import size_trade, validate_pair
from .pricing import PRICE_SCALE, price_at

logger = logging.getLogger(__name__)


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


class AmountUnit(Enum):
    """Unit of Order.remaining_amount; always the order's token_in."""
    QUOTE = "quote"
    BASE = "base"


@dataclass
class Order:
    """
    A lazily priced order.

    BUY:  token_in = quote (escrowed), token_out = base (received)
    SELL: token_in = base (escrowed),  token_out = quote (received)

    Invariants:
        - remaining_amount is in token_in units (see remaining_unit)
        - active == False implies remaining_amount == 0
    """
    order_id: int
    owner: str
    token_in: str
    token_out: str
    start_price: int
    slope: int
    start_time: int
    remaining_amount: int
    is_buy: bool
    active: bool = True

    @property
    def side(self) -> Side:
        return Side.BUY if self.is_buy else Side.SELL

    @property
    def remaining_unit(self) -> AmountUnit:
        return AmountUnit.QUOTE if self.is_buy else AmountUnit.BASE

    @property
    def base_token(self) -> str:
        return self.token_out if self.is_buy else self.token_in

    @property
    def quote_token(self) -> str:
        return self.token_in if self.is_buy else self.token_out

    def price_at(self, timestamp: int) -> int:
        return price_at(self.start_price, self.slope, self.start_time, timestamp)

    def __repr__(self) -> str:
        state = "active" if self.active else "inactive"
        return (
            f"Order(id={self.order_id}, owner={self.owner}, {self.side.value} "
            f"{self.remaining_amount} {self.token_in}->{self.token_out}, {state})"
        )


class _Journal:
    """Undo log plus buffered events for one outermost operation."""

    def __init__(self) -> None:
        self.undo: List[Callable[[], None]] = []
        self.events: List[BookEvent] = []

    def mark(self) -> Tuple[int, int]:
        return len(self.undo), len(self.events)

    def rollback(self, mark: Tuple[int, int]) -> None:
        undo_len, events_len = mark
        while len(self.undo) > undo_len:
            self.undo.pop()()
        del self.events[events_len:]


def _is_int(x) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


class OrderBook:
    """
    Lazy-settlement order book.

    - create_order escrows token_in and stores the order
    - match_orders settles a crossed BUY/SELL pair at the SELL price;
      anyone may call it
    - cancel_order refunds the remainder to the owner

    Every state-changing call commits its effects before touching the
    ledger, so a ledger that calls back into the book only ever sees a
    fully updated order table. Any failure rolls the whole call back
    (order state, id allocation, buffered events and, through the
    ledger's transaction(), ledger moves). Events reach subscribers only
    after the outermost call commits.

    Not thread-safe: calls are expected to run one after another.
    """

    def __init__(
        self,
        ledger: AssetLedger,
        clock: Callable[[], int],
        price_scale: int = PRICE_SCALE,
    ):
        if price_scale <= 0:
            raise ValueError("price_scale must be > 0")
        for name in ("escrow", "release", "transaction"):
            if not callable(getattr(ledger, name, None)):
                raise TypeError(f"ledger must provide {name}()")

        self.ledger = ledger
        self.clock = clock
        self.price_scale = int(price_scale)

        self._orders: Dict[int, Order] = {}
        self._next_order_id = 1
        self._journal: Optional[_Journal] = None
        self._listeners: List[Callable[[BookEvent], None]] = []

        # Stats (committed operations only)
        self._total_created = 0
        self._total_matches = 0
        self._total_cancels = 0

    # ---------- events ----------

    def subscribe_to_events(self, callback: Callable[[BookEvent], None]) -> Callable[[], None]:
        if not callable(callback):
            raise TypeError("Callback must be callable")
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _publish(self, events: List[BookEvent]) -> None:
        for event in events:
            if isinstance(event, OrderCreated):
                self._total_created += 1
            elif isinstance(event, OrdersMatched):
                self._total_matches += 1
            elif isinstance(event, OrderCancelled):
                self._total_cancels += 1

            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception:
                    logger.exception("event listener failed on %s", type(event).__name__)

    # ---------- atomicity ----------

    @contextmanager
    def _atomic(self) -> Iterator[_Journal]:
        outermost = self._journal is None
        if outermost:
            self._journal = _Journal()
        journal = self._journal
        mark = journal.mark()

        try:
            with self.ledger.transaction():
                yield journal
        except BaseException as e:
            journal.rollback(mark)
            if outermost:
                self._journal = None
            logger.warning("rolled back %s: %s", type(e).__name__, e)
            raise

        if outermost:
            self._journal = None
            self._publish(journal.events)

    def _set(self, order: Order, **changes) -> None:
        previous = {k: getattr(order, k) for k in changes}
        self._journal.undo.append(lambda: self._restore(order, previous))
        for k, v in changes.items():
            setattr(order, k, v)

    @staticmethod
    def _restore(order: Order, previous: dict) -> None:
        for k, v in previous.items():
            setattr(order, k, v)

    def _allocate_id(self) -> int:
        order_id = self._next_order_id
        self._next_order_id += 1
        self._journal.undo.append(lambda: setattr(self, "_next_order_id", order_id))
        return order_id

    def _store(self, order: Order) -> None:
        self._orders[order.order_id] = order
        self._journal.undo.append(lambda: self._orders.pop(order.order_id, None))

    # ---------- ledger interactions ----------

    def _escrow(self, asset: str, owner: str, amount: int) -> None:
        if not self.ledger.escrow(asset, owner, amount):
            raise TransferFailed(f"escrow of {amount} {asset} from {owner} failed")

    def _release(self, asset: str, to: str, amount: int) -> None:
        if amount == 0:
            return
        if not self.ledger.release(asset, to, amount):
            raise TransferFailed(f"release of {amount} {asset} to {to} failed")

    # ---------- public API ----------

    def create_order(
        self,
        sender: str,
        token_in: str,
        token_out: str,
        start_price: int,
        slope: int,
        amount: int,
        is_buy: bool,
    ) -> int:
        """
        Escrow `amount` of token_in from sender and store a new order.

        amount is quote units for a BUY, base units for a SELL.

        Raises:
            InvalidOrder: empty/identical asset ids, non-int or negative
                start_price, non-int slope, amount <= 0.
            TransferFailed: the ledger refused the escrow.
        """
        if not sender:
            raise InvalidOrder("sender cannot be empty")
        if not token_in or not token_out:
            raise InvalidOrder("asset identifiers cannot be empty")
        if token_in == token_out:
            raise InvalidOrder(f"token_in and token_out must differ, got {token_in!r}")
        if not _is_int(start_price) or start_price < 0:
            raise InvalidOrder(f"start_price must be an int >= 0, got {start_price!r}")
        if not _is_int(slope):
            raise InvalidOrder(f"slope must be an int, got {slope!r}")
        if not _is_int(amount) or amount <= 0:
            raise InvalidOrder(f"amount must be an int > 0, got {amount!r}")

        with self._atomic() as journal:
            order = Order(
                order_id=self._allocate_id(),
                owner=sender,
                token_in=token_in,
                token_out=token_out,
                start_price=start_price,
                slope=slope,
                start_time=int(self.clock()),
                remaining_amount=amount,
                is_buy=bool(is_buy),
            )
            self._store(order)
            journal.events.append(OrderCreated(
                order_id=order.order_id,
                owner=sender,
                token_in=token_in,
                token_out=token_out,
                start_price=start_price,
                slope=slope,
                start_time=order.start_time,
                amount=amount,
                is_buy=order.is_buy,
            ))
            self._escrow(token_in, sender, amount)

        logger.info("created %r", order)
        return order.order_id

    def match_orders(self, sender: str, buy_id: int, sell_id: int) -> OrdersMatched:
        """
        Settle a crossed BUY/SELL pair at the SELL order's current price.

        Callable by anyone; moves only funds already escrowed by the two
        orders. Either side left with a zero remainder becomes inactive.

        Raises:
            OrderInactive, InvalidMatch, NegativePrice, PriceNotCrossed,
            ZeroAmount, TransferFailed
        """
        buy = self._orders.get(buy_id)
        sell = self._orders.get(sell_id)
        if buy is None or sell is None:
            raise OrderInactive(f"orders {buy_id}/{sell_id} must both exist and be active")
        validate_pair(buy, sell)

        now = int(self.clock())
        buy_price = buy.price_at(now)
        sell_price = sell.price_at(now)
        fill = size_trade(buy.remaining_amount, sell.remaining_amount, buy_price, sell_price, self.price_scale)

        with self._atomic() as journal:
            sell_left = sell.remaining_amount - fill.trade_base
            buy_left = buy.remaining_amount - fill.trade_quote
            self._set(sell, remaining_amount=sell_left, active=sell_left > 0)
            self._set(buy, remaining_amount=buy_left, active=buy_left > 0)

            event = OrdersMatched(
                buy_id=buy_id,
                sell_id=sell_id,
                taker=sender,
                trade_base=fill.trade_base,
                trade_quote=fill.trade_quote,
                price=fill.price,
                timestamp=now,
            )
            journal.events.append(event)

            self._release(sell.token_in, buy.owner, fill.trade_base)
            self._release(buy.token_in, sell.owner, fill.trade_quote)

        logger.info(
            "matched buy=%d sell=%d base=%d quote=%d price=%d taker=%s",
            buy_id, sell_id, fill.trade_base, fill.trade_quote, fill.price, sender,
        )
        return event

    def cancel_order(self, sender: str, order_id: int) -> int:
        """
        Refund the remainder of an active order to its owner.

        Returns the refunded amount (token_in units).

        Raises:
            NotOwner: sender is not the owner (or the order does not exist).
            OrderInactive: already cancelled or fully filled.
            TransferFailed: the ledger refused the refund.
        """
        order = self._orders.get(order_id)
        if order is None or order.owner != sender:
            raise NotOwner(f"{sender} does not own order {order_id}")
        if not order.active:
            raise OrderInactive(f"order {order_id} is not active")

        with self._atomic() as journal:
            refund = order.remaining_amount
            self._set(order, remaining_amount=0, active=False)
            journal.events.append(OrderCancelled(order_id=order_id, owner=sender, amount=refund))
            self._release(order.token_in, sender, refund)

        logger.info("cancelled order %d refund=%d %s", order_id, refund, order.token_in)
        return refund

    # ---------- queries ----------

    def get_order(self, order_id: int) -> Order:
        """Detached copy of the order, including inactive ones."""
        order = self._orders.get(order_id)
        if order is None:
            raise UnknownOrder(f"no order with id {order_id}")
        return replace(order)

    def price_at(self, order_id: int, timestamp: int) -> int:
        """Raises UnknownOrder or NegativePrice."""
        order = self._orders.get(order_id)
        if order is None:
            raise UnknownOrder(f"no order with id {order_id}")
        return order.price_at(timestamp)

    def get_orders_by_owner(self, owner: str) -> List[Order]:
        return [replace(o) for o in self._orders.values() if o.owner == owner]

    def active_orders(self) -> List[Order]:
        return [replace(o) for o in self._orders.values() if o.active]

    def escrowed_total(self, asset: str) -> int:
        """Sum of remaining amounts escrowing `asset`; equals its custody balance."""
        return sum(o.remaining_amount for o in self._orders.values() if o.active and o.token_in == asset)

    @property
    def next_order_id(self) -> int:
        return self._next_order_id

    def __len__(self) -> int:
        return len(self._orders)

    def get_stats(self) -> dict:
        return {
            "total_orders_created": self._total_created,
            "total_matches": self._total_matches,
            "total_cancels": self._total_cancels,
            "active_orders": sum(1 for o in self._orders.values() if o.active),
            "next_order_id": self._next_order_id,
        }
