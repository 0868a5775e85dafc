# main.py
from __future__ import annotations

from engine.clock import ManualClock
from infrastructure.config import BookConfig
from infrastructure.logger import configure_logging, LoggingConfig
from application.analytics_engine import AnalyticsEngine
from application.venue import Venue

WAD = 10 ** 18


def main() -> None:
    cfg = BookConfig.DEFAULT()
    configure_logging(LoggingConfig(level=cfg.log_level, log_file=cfg.log_file))

    clock = ManualClock(start=1_700_000_000)
    venue = Venue(cfg, clock=clock)
    ledger, book = venue.ledger, venue.book

    ledger.mint("USD", "alice", 200 * WAD)
    ledger.mint("ETH", "bob", 100 * WAD)

    # alice bids a flat 1.0 USD/ETH with 200 USD, bob asks a flat 1.0 for 100 ETH
    buy_id = book.create_order("alice", "USD", "ETH", 1 * WAD, 0, 200 * WAD, True)
    sell_id = book.create_order("bob", "ETH", "USD", 1 * WAD, 0, 100 * WAD, False)

    fill = book.match_orders("carol", buy_id, sell_id)

    print("OK: base=", fill.trade_base, "quote=", fill.trade_quote)
    print("buy:", book.get_order(buy_id))
    print("sell:", book.get_order(sell_id))
    print("summary:", AnalyticsEngine.match_summary(venue.journal.events(), cfg.price_scale))

    venue.save_checkpoint()
    venue.save_journal()


if __name__ == "__main__":
    main()
