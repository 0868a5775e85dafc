from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

from engine.clock import SystemClock
from engine.ledger import InMemoryLedger
from engine.order_book import OrderBook
from infrastructure.config import BookConfig
from infrastructure.logger import get_logger
from infrastructure.persistence import atomic_write_json, read_json
from application.event_journal import EventJournal, OrderIndexer

logger = get_logger(__name__)


class Venue:
    """
    Wires one order book to its collaborators per BookConfig:
    - ledger (defaults to an InMemoryLedger)
    - clock (defaults to SystemClock)
    - event journal attached to the book, autosaving to
      config.journal_path every `autosave_every` events when set

    Supports persistence of the journal plus a checkpoint of the order
    table. A checkpoint is a read-only report; the journal is what an
    order table is rebuilt from.
    """

    def __init__(
        self,
        config: BookConfig,
        *,
        ledger=None,
        clock: Optional[Callable[[], int]] = None,
        autosave_every: int = 10_000,
    ):
        self.config = config
        self.ledger = ledger if ledger is not None else InMemoryLedger()
        self.clock = clock if clock is not None else SystemClock()
        self.book = OrderBook(self.ledger, self.clock, price_scale=config.price_scale)
        self.journal = EventJournal(autosave_path=config.journal_path, autosave_every=autosave_every)
        self.journal.attach(self.book)

    def close(self) -> None:
        self.journal.detach()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "config": self.config.name,
            "price_scale": self.config.price_scale,
            "now": int(self.clock()),
            "stats": self.book.get_stats(),
            "orders": [self.book.get_order(oid) for oid in range(1, self.book.next_order_id)],
        }

    def save_checkpoint(self, path: Optional[str] = None) -> str:
        """
        Saves:
        - config name and price scale
        - every order (inactive ones included)
        - book stats
        """
        path = path or self.config.checkpoint_path
        if not path:
            raise ValueError("no checkpoint path configured")
        payload = self.snapshot()
        payload["saved_at"] = time.time()
        atomic_write_json(path, payload)
        logger.info("checkpoint saved to %s (%d orders)", path, len(payload["orders"]))
        return path

    @staticmethod
    def load_checkpoint(path: str) -> Dict[str, Any]:
        """Read a checkpoint back as plain data for inspection. Nothing is restored."""
        return read_json(path)

    def save_journal(self, path: Optional[str] = None) -> str:
        path = path or self.config.journal_path
        if not path:
            raise ValueError("no journal path configured")
        self.journal.save(path)
        return path

    def rebuild_from_journal(self) -> OrderIndexer:
        return OrderIndexer.from_records(self.journal.records)

    @staticmethod
    def load_journal(path: str) -> OrderIndexer:
        """Rebuild the order table from a saved JSONL journal."""
        return OrderIndexer.from_records(EventJournal.load(path))
