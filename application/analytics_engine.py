"""
Analytics engine - settlement statistics and schedule sampling.

Calculations:
1. Match summary (count, volumes, VWAP, clearing price range)
2. Price curves for charting a schedule over time

All functions are pure (stateless) - they take events / orders as input.
Volumes are exact Python ints; prices are reported as floats in human
units (scaled price / price_scale) since they are for display only.
"""
from typing import Dict, Iterable, Sequence

import numpy as np

from engine.errors import NegativePrice
from engine.events import OrdersMatched
from engine.order_book import Order


class AnalyticsEngine:
    """Pure analytics calculations. All static methods - no state."""

    @staticmethod
    def match_summary(events: Iterable[OrdersMatched], price_scale: int) -> Dict[str, float]:
        """
        Summarise a stream of matches.

        VWAP is total quote / total base, i.e. the average price actually
        paid after rounding, not the average quoted price.

        Returns:
            Dict with count, base_volume, quote_volume, vwap, min_price,
            max_price. Prices are 0.0 when there are no matches.
        """
        matches = [e for e in events if isinstance(e, OrdersMatched)]
        base_volume = sum(e.trade_base for e in matches)
        quote_volume = sum(e.trade_quote for e in matches)

        if not matches:
            return {
                "count": 0,
                "base_volume": 0,
                "quote_volume": 0,
                "vwap": 0.0,
                "min_price": 0.0,
                "max_price": 0.0,
            }

        prices = np.array([e.price / price_scale for e in matches], dtype=np.float64)
        return {
            "count": len(matches),
            "base_volume": base_volume,
            "quote_volume": quote_volume,
            "vwap": quote_volume / base_volume,
            "min_price": float(prices.min()),
            "max_price": float(prices.max()),
        }

    @staticmethod
    def price_curve(order: Order, timestamps: Sequence[int], price_scale: int) -> np.ndarray:
        """
        Sample an order's schedule at each timestamp.

        Points where the schedule has gone negative are NaN rather than
        clamped, mirroring NegativePrice in the engine.
        """
        out = np.full(len(timestamps), np.nan, dtype=np.float64)
        for i, ts in enumerate(timestamps):
            try:
                out[i] = order.price_at(int(ts)) / price_scale
            except NegativePrice:
                continue
        return out

    @staticmethod
    def fill_ratio(order: Order, original_amount: int) -> float:
        """Fraction of the original escrow that left the order (filled or refunded)."""
        if original_amount <= 0:
            raise ValueError("original_amount must be > 0")
        return 1.0 - order.remaining_amount / original_amount
