"""
Asset ledger contract consumed by the order book, plus an in-memory
reference ledger.

The book only ever calls two operations:

    escrow(asset, owner, amount)  -> bool   debit owner, credit custody
    release(asset, to, amount)    -> bool   debit custody, credit `to`

Each must either succeed completely or report failure (falsy return or
an exception) with no partial effect. The book checks every outcome.

A ledger must also expose `transaction()`, a nestable context manager
that rolls back its own moves if the block raises. The book enters it
around each operation so ledger moves and order state commit or roll
back together; without it a failed second release would leave the
first one paid out.
"""
from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from typing import Callable, ContextManager, DefaultDict, Dict, Iterator, List, Optional, Protocol


class AssetLedger(Protocol):
    def escrow(self, asset: str, owner: str, amount: int) -> bool: ...

    def release(self, asset: str, to: str, amount: int) -> bool: ...

    def transaction(self) -> ContextManager[None]: ...


# hook(kind, asset, account, amount) runs after a successful move
TransferHook = Callable[[str, str, str, int], None]


class InMemoryLedger:
    """
    Balances per (asset, account) with a single custody account.

    Not thread-safe; the book runs one operation at a time.

    Invariants:
        - balances never go negative
        - mint is the only way value enters the ledger
    """

    CUSTODY = "__custody__"

    def __init__(self, hook: Optional[TransferHook] = None):
        self._balances: DefaultDict[str, DefaultDict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._snapshots: List[Dict[str, Dict[str, int]]] = []
        self.hook = hook

    # ---------- funding / queries ----------

    def mint(self, asset: str, account: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError(f"mint amount must be > 0, got {amount}")
        self._balances[asset][account] += amount

    def balance_of(self, asset: str, account: str) -> int:
        return self._balances[asset][account] if asset in self._balances else 0

    def custody_balance(self, asset: str) -> int:
        return self.balance_of(asset, self.CUSTODY)

    def total_supply(self, asset: str) -> int:
        return sum(self._balances[asset].values()) if asset in self._balances else 0

    # ---------- AssetLedger ----------

    def escrow(self, asset: str, owner: str, amount: int) -> bool:
        if not self._move(asset, owner, self.CUSTODY, amount):
            return False
        self._fire("escrow", asset, owner, amount)
        return True

    def release(self, asset: str, to: str, amount: int) -> bool:
        if not self._move(asset, self.CUSTODY, to, amount):
            return False
        self._fire("release", asset, to, amount)
        return True

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Snapshot balances; restore them if the block raises. Nestable."""
        self._snapshots.append({a: dict(accts) for a, accts in self._balances.items()})
        try:
            yield
        except BaseException:
            snapshot = self._snapshots.pop()
            self._balances.clear()
            for asset, accounts in snapshot.items():
                self._balances[asset].update(accounts)
            raise
        else:
            self._snapshots.pop()

    # ---------- internals ----------

    def _move(self, asset: str, src: str, dst: str, amount: int) -> bool:
        if amount <= 0 or self.balance_of(asset, src) < amount:
            return False
        book = self._balances[asset]
        book[src] -= amount
        book[dst] += amount
        return True

    def _fire(self, kind: str, asset: str, account: str, amount: int) -> None:
        if self.hook is not None:
            self.hook(kind, asset, account, amount)
