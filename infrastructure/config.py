from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BookConfig:
    """
    BookConfig controls venue wiring.

    Note:
    - price_scale is the fixed-point scale for quote-per-base prices; it
      must match how order prices were posted.
    - journal_path / checkpoint_path of None keep everything in memory.
    """
    name: str
    price_scale: int

    # Persistence
    journal_path: Optional[str]
    checkpoint_path: Optional[str]

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.price_scale <= 0:
            raise ValueError(f"price_scale must be > 0, got {self.price_scale}")

    @staticmethod
    def DEFAULT() -> "BookConfig":
        return BookConfig(
            name="DEFAULT",
            price_scale=10 ** 18,
            journal_path="runs/journal.jsonl",
            checkpoint_path="runs/checkpoint.json",
            log_level="INFO",
            log_file="runs/lazybook.log",
        )

    @staticmethod
    def SIX_DECIMALS() -> "BookConfig":
        return BookConfig(
            name="SIX_DECIMALS",
            price_scale=10 ** 6,      # stablecoin-style quote assets
            journal_path="runs/journal.jsonl",
            checkpoint_path="runs/checkpoint.json",
            log_level="INFO",
            log_file="runs/lazybook.log",
        )

    @staticmethod
    def TESTING() -> "BookConfig":
        return BookConfig(
            name="TESTING",
            price_scale=10 ** 18,
            journal_path=None,
            checkpoint_path=None,
            log_level="DEBUG",
            log_file=None,
        )

    @staticmethod
    def by_name(name: str) -> "BookConfig":
        key = name.upper()
        if key not in PRESETS:
            raise KeyError(f"Unknown config preset: {name}")
        return getattr(BookConfig, key)()


PRESETS = ("DEFAULT", "SIX_DECIMALS", "TESTING")
