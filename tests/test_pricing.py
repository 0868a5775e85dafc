"""
Unit tests for lazy price schedules.
Critical: prices are exact integers and never clamped.
"""
import pytest

from engine.clock import ManualClock
from engine.errors import NegativePrice
from engine.ledger import InMemoryLedger
from engine.order_book import OrderBook
from engine.pricing import ScheduleKind, last_valid_time, price_at, schedule_kind

W = 10 ** 18


class TestPriceAt:
    """Evaluation rules for price_at."""

    def test_before_or_at_start_returns_start_price(self):
        """No extrapolation backward in time."""
        assert price_at(5 * W, -3 * W, 100, 100) == 5 * W
        assert price_at(5 * W, -3 * W, 100, 0) == 5 * W
        assert price_at(5 * W, 10 * W, 100, 99) == 5 * W

    def test_zero_slope_is_constant(self):
        """Fixed-price schedule never moves."""
        for ts in (0, 1, 1_000, 10 ** 12):
            assert price_at(7 * W, 0, 50, ts) == 7 * W

    def test_rising_schedule_exact(self):
        """Rising auction adds slope per elapsed second, exactly."""
        assert price_at(W, 3, 10, 15) == W + 15

    def test_falling_schedule_reaches_zero(self):
        """Zero is a valid price."""
        assert price_at(10 * W, -W, 0, 10) == 0

    def test_negative_price_fails(self):
        """
        Scenario C arithmetic: 10e18 - 1e18 * 11 = -1e18 -> NegativePrice.
        """
        with pytest.raises(NegativePrice) as exc:
            price_at(10 * W, -W, 0, 11)
        assert exc.value.value == -W

    def test_no_overflow_on_huge_inputs(self):
        """Intermediate product exceeds 256 bits without wrapping."""
        assert price_at(2 ** 255, 2 ** 200, 0, 2 ** 60) == 2 ** 255 + 2 ** 260


class TestScheduleHelpers:

    def test_schedule_kind(self):
        assert schedule_kind(0) is ScheduleKind.FIXED
        assert schedule_kind(5) is ScheduleKind.RISING
        assert schedule_kind(-5) is ScheduleKind.DUTCH

    def test_last_valid_time_for_dutch(self):
        """Last second at which a Dutch schedule is still non-negative."""
        lvt = last_valid_time(10 * W, -W, 1000)
        assert lvt == 1010
        assert price_at(10 * W, -W, 1000, lvt) == 0
        with pytest.raises(NegativePrice):
            price_at(10 * W, -W, 1000, lvt + 1)

    def test_last_valid_time_rounds_down(self):
        lvt = last_valid_time(10, -3, 0)
        assert lvt == 3
        assert price_at(10, -3, 0, lvt) == 1

    def test_last_valid_time_none_for_non_falling(self):
        assert last_valid_time(W, 0, 0) is None
        assert last_valid_time(W, 1, 0) is None


class TestOrderPriceQuery:
    """priceAt(orderId, timestamp) through the book."""

    def setup_method(self):
        self.ledger = InMemoryLedger()
        self.clock = ManualClock(start=1_000)
        self.book = OrderBook(self.ledger, self.clock)
        self.ledger.mint("ETH", "bob", 100 * W)

    def test_scenario_c_negative_price(self):
        """Dutch SELL at 10e18 falling 1e18/s; 11 seconds later fails."""
        sid = self.book.create_order("bob", "ETH", "USD", 10 * W, -W, 1 * W, False)
        self.clock.advance(11)

        with pytest.raises(NegativePrice) as exc:
            self.book.price_at(sid, self.clock())
        assert exc.value.value == -W

    def test_past_and_future_timestamps(self):
        """Query works for arbitrary timestamps relative to now."""
        sid = self.book.create_order("bob", "ETH", "USD", 10 * W, -W, 1 * W, False)

        assert self.book.price_at(sid, 0) == 10 * W
        assert self.book.price_at(sid, 1_004) == 6 * W
        assert self.book.price_at(sid, 1_010) == 0

    def test_query_does_not_mutate(self):
        sid = self.book.create_order("bob", "ETH", "USD", 10 * W, -W, 1 * W, False)
        before = self.book.get_order(sid)
        self.book.price_at(sid, 1_005)
        assert self.book.get_order(sid) == before
