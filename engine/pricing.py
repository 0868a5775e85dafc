"""
Lazy price schedules.

A price is never stored; it is recomputed from (start_price, slope,
start_time) and a caller-supplied timestamp:

    price(t) = start_price                           if t <= start_time
             = start_price + slope * (t - start_time) otherwise

slope == 0 gives a fixed price, slope > 0 a rising auction and
slope < 0 a falling (Dutch) auction. Prices are quote-per-base scaled by
PRICE_SCALE. Python ints are unbounded so the intermediate product
cannot overflow.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .errors import NegativePrice

logger = logging.getLogger(__name__)

PRICE_SCALE = 10 ** 18


class ScheduleKind(Enum):
    FIXED = "fixed"
    RISING = "rising"
    DUTCH = "dutch"


def schedule_kind(slope: int) -> ScheduleKind:
    if slope > 0:
        return ScheduleKind.RISING
    if slope < 0:
        return ScheduleKind.DUTCH
    return ScheduleKind.FIXED


def price_at(start_price: int, slope: int, start_time: int, timestamp: int) -> int:
    """
    Evaluate a linear schedule at `timestamp`.

    No extrapolation backward in time: any timestamp at or before
    start_time yields start_price exactly.

    Raises:
        NegativePrice: the schedule has run past zero. The value is never
            clamped; callers must not act on it.
    """
    if timestamp <= start_time:
        return start_price

    elapsed = timestamp - start_time
    value = start_price + slope * elapsed
    if value < 0:
        raise NegativePrice(value)

    logger.debug("price_at start=%d slope=%d elapsed=%d -> %d", start_price, slope, elapsed, value)
    return value


def last_valid_time(start_price: int, slope: int, start_time: int) -> Optional[int]:
    """
    Last timestamp at which a falling schedule is still >= 0.

    Returns None for fixed or rising schedules, which never go negative.
    Informational only; orders do not expire.
    """
    if slope >= 0:
        return None
    return start_time + start_price // -slope
