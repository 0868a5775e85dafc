from __future__ import annotations

from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional

from engine.events import (
    BookEvent,
    OrderCancelled,
    OrderCreated,
    OrdersMatched,
    event_from_record,
    event_to_record,
)
from engine.order_book import Order
from infrastructure.logger import get_logger
from infrastructure.persistence import atomic_write_jsonl, read_jsonl

logger = get_logger(__name__)


class EventJournal:
    """
    Records the book's committed event stream as JSONL-ready records.

    Record shape: {"seq": n, "type": "OrdersMatched", "event": {...}}.
    The book publishes only committed events, so the journal never holds
    a rolled-back operation.
    """

    def __init__(self, autosave_path: Optional[str] = None, autosave_every: int = 10_000):
        self._lock = RLock()
        self._records: List[Dict[str, Any]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.autosave_path = autosave_path
        self.autosave_every = autosave_every

    def attach(self, book) -> None:
        with self._lock:
            if self._unsubscribe is not None:
                raise RuntimeError("journal already attached")
            self._unsubscribe = book.subscribe_to_events(self._on_event)

    def detach(self) -> None:
        with self._lock:
            if self._unsubscribe:
                self._unsubscribe()
                self._unsubscribe = None

    def _on_event(self, event: BookEvent) -> None:
        with self._lock:
            rec = event_to_record(event)
            rec["seq"] = len(self._records) + 1
            self._records.append(rec)
            if self.autosave_path and len(self._records) % self.autosave_every == 0:
                atomic_write_jsonl(self.autosave_path, self._records)

    @property
    def records(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._records)

    def events(self) -> List[BookEvent]:
        return [event_from_record(r) for r in self.records]

    def save(self, path_jsonl: str) -> None:
        with self._lock:
            atomic_write_jsonl(path_jsonl, self._records)
        logger.info("saved %d journal records to %s", len(self._records), path_jsonl)

    @staticmethod
    def load(path_jsonl: str) -> List[Dict[str, Any]]:
        return read_jsonl(path_jsonl)


class OrderIndexer:
    """
    Rebuilds the order table purely from the event stream.

    remaining = created amount - sum(trade_base as SELL)
                               - sum(trade_quote as BUY)
    and a cancel zeroes it. At any committed point the result equals
    what OrderBook.get_order returns.
    """

    def __init__(self):
        self.orders: Dict[int, Order] = {}

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "OrderIndexer":
        indexer = cls()
        for rec in sorted(records, key=lambda r: r.get("seq", 0)):
            indexer.apply(event_from_record(rec))
        return indexer

    def apply(self, event: BookEvent) -> None:
        if isinstance(event, OrderCreated):
            self.orders[event.order_id] = Order(
                order_id=event.order_id,
                owner=event.owner,
                token_in=event.token_in,
                token_out=event.token_out,
                start_price=event.start_price,
                slope=event.slope,
                start_time=event.start_time,
                remaining_amount=event.amount,
                is_buy=event.is_buy,
            )
        elif isinstance(event, OrdersMatched):
            buy = self.orders[event.buy_id]
            sell = self.orders[event.sell_id]
            buy.remaining_amount -= event.trade_quote
            sell.remaining_amount -= event.trade_base
            buy.active = buy.remaining_amount > 0
            sell.active = sell.remaining_amount > 0
        elif isinstance(event, OrderCancelled):
            order = self.orders[event.order_id]
            order.remaining_amount = 0
            order.active = False
        else:
            raise TypeError(f"unsupported event {type(event).__name__}")

