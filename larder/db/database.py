"""Unit of work over short-lived SQLite connections."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

from ..errors import TransactionFailure
from .families import FamilyRepository
from .inventory import InventoryRepository
from .lists import ListRepository
from .meal_plans import MealPlanRepository
from .notifications import NotificationRepository
from .ratings import RatingRepository
from .reviews import ReviewRepository
from .schema import connect, ensure_schema

T = TypeVar("T")

DEFAULT_DB_PATH = "~/.config/larder/larder.db"


class Transaction:
    """Handle passed to a unit of work.

    Every repository on the handle shares one connection and therefore one
    transaction: whatever they write commits or rolls back together.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.inventory = InventoryRepository(conn)
        self.lists = ListRepository(conn)
        self.reviews = ReviewRepository(conn)
        self.families = FamilyRepository(conn)
        self.meal_plans = MealPlanRepository(conn)
        self.notifications = NotificationRepository(conn)
        self.ratings = RatingRepository(conn)


class Database:
    """Entry point to the relational store.

    Holds no open connection between calls. Each ``transaction()`` opens
    a connection, runs the unit of work inside ``BEGIN IMMEDIATE`` so that
    concurrent writers queue on the write lock, and closes it again.
    """

    def __init__(
        self,
        db_path: str | Path = DEFAULT_DB_PATH,
        busy_timeout: float = 5.0,
    ) -> None:
        self._db_path = Path(db_path).expanduser()
        self._busy_timeout = busy_timeout
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._db_path

    def _ensure_schema(self) -> None:
        with self._schema_lock:
            if not self._schema_ready:
                ensure_schema(self._db_path).close()
                self._schema_ready = True

    @contextmanager
    def transaction(self, *, readonly: bool = False) -> Iterator[Transaction]:
        """Run the enclosed block as one atomic unit of work.

        Commits when the block finishes, rolls back on any exception.
        SQLite errors surface as TransactionFailure; everything else
        propagates unchanged after the rollback.
        """
        try:
            self._ensure_schema()
            conn = connect(self._db_path, timeout=self._busy_timeout)
        except sqlite3.Error as exc:
            raise TransactionFailure(f"could not open {self._db_path}: {exc}") from exc

        try:
            try:
                conn.execute("BEGIN" if readonly else "BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise TransactionFailure(f"could not begin transaction: {exc}") from exc

            try:
                yield Transaction(conn)
            except sqlite3.Error as exc:
                _rollback(conn)
                raise TransactionFailure(str(exc)) from exc
            except BaseException:
                _rollback(conn)
                raise

            try:
                conn.execute("COMMIT")
            except sqlite3.Error as exc:
                _rollback(conn)
                raise TransactionFailure(f"commit failed: {exc}") from exc
        finally:
            conn.close()

    def run(self, work: Callable[[Transaction], T], *, readonly: bool = False) -> T:
        """Call ``work`` with a transaction handle and return its result."""
        with self.transaction(readonly=readonly) as tx:
            return work(tx)


def _rollback(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        conn.execute("ROLLBACK")
