"""
Failure taxonomy for the order book.

Every failure aborts the whole operation: the engine rolls back any
state it touched and the exception reaches the caller unchanged. None of
these are retried internally.
"""
from __future__ import annotations


class OrderBookError(Exception):
    """Base class for every rejection raised by the engine."""


class InvalidOrder(OrderBookError):
    """Malformed creation request (bad asset identifier, amount, or price)."""


class OrderInactive(OrderBookError):
    """The referenced order is cancelled, fully filled, or was never created."""


class NotOwner(OrderBookError):
    """Caller is not the recorded owner of the order."""


class InvalidMatch(OrderBookError):
    """Side mismatch or asset-pair mismatch between the two orders."""


class PriceNotCrossed(OrderBookError):
    """
    BUY price is below the SELL price at evaluation time.

    Not misuse: the pair is simply not viable yet. Callers are expected
    to retry later.
    """

    def __init__(self, buy_price: int, sell_price: int):
        super().__init__(f"buy price {buy_price} below sell price {sell_price}")
        self.buy_price = buy_price
        self.sell_price = sell_price


class ZeroAmount(OrderBookError):
    """The would-be trade rounds down to zero base units."""


class NegativePrice(OrderBookError):
    """The schedule has run past zero; the computed price is negative."""

    def __init__(self, value: int):
        super().__init__(f"price schedule evaluates to negative value {value}")
        self.value = value


class UnknownOrder(OrderBookError, KeyError):
    """No order was ever allocated under this identifier."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class TransferFailed(OrderBookError):
    """The asset ledger reported failure for an escrow or release."""
