"""Review entry storage."""

from __future__ import annotations

import sqlite3

from ..models import Category, ReviewEntry, ReviewStatus
from .base import Repository, new_id, timestamp


def _to_entry(row: sqlite3.Row) -> ReviewEntry:
    return ReviewEntry(
        id=row["id"],
        proposer_id=row["proposer_id"],
        owner_id=row["owner_id"],
        name=row["name"],
        canonical_name=row["canonical_name"],
        category_guess=Category(row["category_guess"]),
        quantity=row["quantity"],
        unit=row["unit"],
        image_url=row["image_url"],
        status=ReviewStatus(row["status"]),
        source_item_id=row["source_item_id"],
        reviewer_id=row["reviewer_id"],
        reviewed_at=row["reviewed_at"],
        created_at=row["created_at"],
    )


class ReviewRepository(Repository):
    """Manages the review_entries table.

    Entries are never deleted; they stay behind as the audit trail.
    """

    def create(
        self,
        proposer_id: str,
        owner_id: str,
        name: str,
        canonical_name: str,
        *,
        category_guess: Category = Category.FRIDGE,
        quantity: float | None = None,
        unit: str | None = None,
        image_url: str | None = None,
        source_item_id: str | None = None,
    ) -> ReviewEntry:
        entry = ReviewEntry(
            id=new_id(),
            proposer_id=proposer_id,
            owner_id=owner_id,
            name=name,
            canonical_name=canonical_name,
            category_guess=category_guess,
            quantity=quantity,
            unit=unit,
            image_url=image_url,
            source_item_id=source_item_id,
            created_at=timestamp(),
        )
        self._conn.execute(
            """INSERT INTO review_entries
               (id, proposer_id, owner_id, name, canonical_name, category_guess,
                quantity, unit, image_url, status, source_item_id, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.id,
                entry.proposer_id,
                entry.owner_id,
                entry.name,
                entry.canonical_name,
                entry.category_guess.value,
                entry.quantity,
                entry.unit,
                entry.image_url,
                entry.status.value,
                entry.source_item_id,
                entry.created_at,
            ),
        )
        return entry

    def get(self, entry_id: str) -> ReviewEntry | None:
        row = self._conn.execute(
            "SELECT * FROM review_entries WHERE id = ?", (entry_id,)
        ).fetchone()
        return _to_entry(row) if row else None

    def pending_for_owner(self, owner_id: str) -> list[ReviewEntry]:
        rows = self._conn.execute(
            """SELECT * FROM review_entries
               WHERE owner_id = ? AND status = 'pending'
               ORDER BY created_at DESC, rowid DESC""",
            (owner_id,),
        ).fetchall()
        return [_to_entry(r) for r in rows]

    def resolve(
        self,
        entry_id: str,
        status: ReviewStatus,
        reviewer_id: str,
    ) -> ReviewEntry | None:
        """Move a pending entry to a terminal status.

        The update only matches while the entry is still pending, so of two
        racing reviewers exactly one succeeds. Returns None when nothing
        was updated.
        """
        cur = self._conn.execute(
            """UPDATE review_entries
               SET status = ?, reviewer_id = ?, reviewed_at = ?
               WHERE id = ? AND status = 'pending'""",
            (status.value, reviewer_id, timestamp(), entry_id),
        )
        if cur.rowcount == 0:
            return None
        return self.get(entry_id)
