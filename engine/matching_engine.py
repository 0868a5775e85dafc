"""
Two-order settlement math.

Semantics:
- Validation order is fixed: both active, then sides, then asset pair,
  then the price cross. Each failure has its own exception.
- Crossed means buy_price >= sell_price.
- Execution price: the SELL order's (maker) price at evaluation time.
- Units: SELL remaining is base, BUY remaining is quote. Prices are
  quote-per-base scaled by `scale`.

Sizing:
    max_base_from_buy = buy_remaining * scale // sell_price
    trade_base        = min(sell_remaining, max_base_from_buy)
    trade_quote       = trade_base * sell_price // scale

Both divisions floor, so the engine never pays out more than is
escrowed. Any rounding loss is borne by the side that is not the
binding constraint, never by custody.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import InvalidMatch, OrderInactive, PriceNotCrossed, ZeroAmount

if TYPE_CHECKING:
    from .order_book import Order


@dataclass(frozen=True)
class Settlement:
    trade_base: int
    trade_quote: int
    price: int


def validate_pair(buy: "Order", sell: "Order") -> None:
    if not buy.active or not sell.active:
        raise OrderInactive(f"orders {buy.order_id}/{sell.order_id} must both be active")
    if not buy.is_buy or sell.is_buy:
        raise InvalidMatch(f"order {buy.order_id} must be BUY and order {sell.order_id} must be SELL")
    if buy.token_out != sell.token_in or buy.token_in != sell.token_out:
        raise InvalidMatch(
            f"asset pair mismatch: buy {buy.token_in}->{buy.token_out}, "
            f"sell {sell.token_in}->{sell.token_out}"
        )


def size_trade(buy_remaining: int, sell_remaining: int, buy_price: int, sell_price: int, scale: int) -> Settlement:
    """
    Raises:
        PriceNotCrossed: buy_price < sell_price.
        ZeroAmount: trade rounds to zero base units.
    """
    if buy_price < sell_price:
        raise PriceNotCrossed(buy_price, sell_price)

    if sell_price == 0:
        # zero ask: the buyer's budget is unbounded
        trade_base = sell_remaining
    else:
        max_base_from_buy = buy_remaining * scale // sell_price
        trade_base = min(sell_remaining, max_base_from_buy)

    if trade_base == 0:
        raise ZeroAmount(
            f"trade rounds to zero base (buy remaining {buy_remaining}, sell price {sell_price})"
        )

    trade_quote = trade_base * sell_price // scale
    return Settlement(trade_base=trade_base, trade_quote=trade_quote, price=sell_price)
