"""
Domain layer - lazy pricing, order lifecycle and settlement.
Pure logic, zero dependencies on UI/infrastructure.
"""
from .clock import ManualClock, SystemClock
from .errors import (
    InvalidMatch,
    InvalidOrder,
    NegativePrice,
    NotOwner,
    OrderBookError,
    OrderInactive,
    PriceNotCrossed,
    TransferFailed,
    UnknownOrder,
    ZeroAmount,
)
from .events import OrderCancelled, OrderCreated, OrdersMatched
from .ledger import AssetLedger, InMemoryLedger
from .matching_engine import Settlement, size_trade
from .order_book import AmountUnit, Order, OrderBook, Side
from .pricing import PRICE_SCALE, ScheduleKind, last_valid_time, price_at, schedule_kind

__all__ = [
    'OrderBook',
    'Order',
    'Side',
    'AmountUnit',
    'Settlement',
    'size_trade',
    'price_at',
    'last_valid_time',
    'schedule_kind',
    'ScheduleKind',
    'PRICE_SCALE',
    'AssetLedger',
    'InMemoryLedger',
    'SystemClock',
    'ManualClock',
    'OrderCreated',
    'OrdersMatched',
    'OrderCancelled',
    'OrderBookError',
    'InvalidOrder',
    'OrderInactive',
    'NotOwner',
    'InvalidMatch',
    'PriceNotCrossed',
    'ZeroAmount',
    'NegativePrice',
    'UnknownOrder',
    'TransferFailed',
]
