"""Shared plumbing for the per-aggregate repositories."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone


def new_id() -> str:
    return uuid.uuid4().hex


def timestamp() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Repository:
    """A narrow view of the store bound to one transaction's connection.

    Repositories never commit; the enclosing unit of work does.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
