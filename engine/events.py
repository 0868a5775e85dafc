"""
Observability events.

These are the only durable records besides the order table. An external
indexer can rebuild full history from this stream plus point-in-time
`get_order` reads (see application.event_journal.OrderIndexer).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Type, Union


@dataclass(frozen=True)
class OrderCreated:
    order_id: int
    owner: str
    token_in: str
    token_out: str
    start_price: int
    slope: int
    start_time: int
    amount: int
    is_buy: bool


@dataclass(frozen=True)
class OrdersMatched:
    """
    One settlement between a BUY and a SELL order.

    trade_base moved SELL custody -> buyer, trade_quote moved BUY
    custody -> seller. `price` is the SELL (maker) price the trade
    cleared at, evaluated at `timestamp`.
    """
    buy_id: int
    sell_id: int
    taker: str
    trade_base: int
    trade_quote: int
    price: int
    timestamp: int

    def __post_init__(self):
        assert self.trade_base > 0, "trade_base must be positive"
        assert self.trade_quote >= 0, "trade_quote cannot be negative"


@dataclass(frozen=True)
class OrderCancelled:
    order_id: int
    owner: str
    amount: int


BookEvent = Union[OrderCreated, OrdersMatched, OrderCancelled]

EVENT_TYPES: Dict[str, Type[Any]] = {
    cls.__name__: cls for cls in (OrderCreated, OrdersMatched, OrderCancelled)
}


def event_to_record(event: BookEvent) -> Dict[str, Any]:
    return {"type": type(event).__name__, "event": asdict(event)}


def event_from_record(record: Dict[str, Any]) -> BookEvent:
    try:
        cls = EVENT_TYPES[record["type"]]
    except KeyError:
        raise ValueError(f"unknown event record type: {record.get('type')!r}") from None
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in record["event"].items() if k in names})
