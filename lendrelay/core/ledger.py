#!filepath: lendrelay/core/ledger.py
"""
Keyed ledger storage with all-or-nothing transactions.

Every write made inside ``Ledger.transaction()`` is journalled with the value
it replaced; if the block raises, the journal is replayed backwards and the
ledger is exactly as it was before the block. Transactions nest (savepoints)
and all of them run under one re-entrant lock, which makes the ledger the
single serialization point for nonce checks, index accrual and balance moves.
"""
from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple

# journal entry: (table, key, previous value, key existed before)
_Entry = Tuple[str, str, Any, bool]

NONCE = "nonce"
PRINCIPAL = "principal"
SCALED = "scaled"
POOL = "pool"


@dataclass(frozen=True)
class Account:
    address: str
    nonce: int = 0
    deposit_principal: int = 0
    scaled_deposit: int = 0


@dataclass
class Transaction:
    """Handle yielded by ``Ledger.transaction``; counts the writes it made."""
    savepoint: int
    writes: int = 0
    events: List[Dict[str, Any]] = field(default_factory=list)

    def emit(self, name: str, **data) -> None:
        self.events.append({"event": name, **data})


class Ledger:
    def __init__(self):
        self._tables: Dict[str, Dict[str, Any]] = defaultdict(dict)
        self._journal: List[_Entry] | None = None
        self._active: List[Transaction] = []
        self._lock = threading.RLock()

    # ---------------------------------------------------------
    # raw access
    # ---------------------------------------------------------
    def read(self, table: str, key: str, default: Any = 0) -> Any:
        with self._lock:
            return self._tables[table].get(key, default)

    def write(self, table: str, key: str, value: Any) -> None:
        with self._lock:
            rows = self._tables[table]
            if self._journal is not None:
                existed = key in rows
                self._journal.append((table, key, rows.get(key), existed))
                for txn in self._active:
                    txn.writes += 1
            rows[key] = value

    def add(self, table: str, key: str, delta: int) -> int:
        with self._lock:
            value = self.read(table, key) + delta
            if value < 0:
                raise ValueError(f"{table}[{key}] would become negative")
            self.write(table, key, value)
            return value

    def keys(self, table: str) -> List[str]:
        with self._lock:
            return list(self._tables[table])

    # ---------------------------------------------------------
    # transactions
    # ---------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        with self._lock:
            outermost = self._journal is None
            if outermost:
                self._journal = []
            txn = Transaction(savepoint=len(self._journal))
            self._active.append(txn)
            try:
                yield txn
            except BaseException:
                self._rollback(txn.savepoint)
                raise
            finally:
                self._active.pop()
                if outermost:
                    self._journal = None

    def _rollback(self, savepoint: int) -> None:
        journal = self._journal
        while len(journal) > savepoint:
            table, key, previous, existed = journal.pop()
            if existed:
                self._tables[table][key] = previous
            else:
                self._tables[table].pop(key, None)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # ---------------------------------------------------------
    # actor view
    # ---------------------------------------------------------
    def nonce_of(self, actor: str) -> int:
        return self.read(NONCE, actor)

    def advance_nonce(self, actor: str) -> int:
        return self.add(NONCE, actor, 1)

    def account(self, actor: str) -> Account:
        with self._lock:
            return Account(
                address=actor,
                nonce=self.read(NONCE, actor),
                deposit_principal=self.read(PRINCIPAL, actor),
                scaled_deposit=self.read(SCALED, actor),
            )
