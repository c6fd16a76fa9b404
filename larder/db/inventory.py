"""Kitchen inventory storage."""

from __future__ import annotations

import sqlite3
from datetime import date

from ..models import Category, InventoryItem
from .base import Repository, new_id, timestamp


def _to_item(row: sqlite3.Row) -> InventoryItem:
    return InventoryItem(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        canonical_name=row["canonical_name"],
        category=Category(row["category"]),
        quantity=row["quantity"],
        unit=row["unit"],
        image_url=row["image_url"],
        expiration_date=row["expiration_date"],
        source_item_id=row["source_item_id"],
        added_at=row["added_at"],
    )


class InventoryRepository(Repository):
    """Manages the inventory_items table."""

    def add(
        self,
        owner_id: str,
        name: str,
        canonical_name: str,
        *,
        category: Category = Category.FRIDGE,
        quantity: float = 1.0,
        unit: str | None = None,
        image_url: str | None = None,
        expiration_date: str | None = None,
        source_item_id: str | None = None,
    ) -> InventoryItem:
        item = InventoryItem(
            id=new_id(),
            owner_id=owner_id,
            name=name,
            canonical_name=canonical_name,
            category=category,
            quantity=quantity,
            unit=unit,
            image_url=image_url,
            expiration_date=expiration_date,
            source_item_id=source_item_id,
            added_at=timestamp(),
        )
        self._conn.execute(
            """INSERT INTO inventory_items
               (id, owner_id, name, canonical_name, category, quantity, unit,
                image_url, expiration_date, source_item_id, added_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                item.id,
                item.owner_id,
                item.name,
                item.canonical_name,
                item.category.value,
                item.quantity,
                item.unit,
                item.image_url,
                item.expiration_date,
                item.source_item_id,
                item.added_at,
            ),
        )
        return item

    def get(self, item_id: str) -> InventoryItem | None:
        row = self._conn.execute(
            "SELECT * FROM inventory_items WHERE id = ?", (item_id,)
        ).fetchone()
        return _to_item(row) if row else None

    def list_for_owner(self, owner_id: str) -> list[InventoryItem]:
        rows = self._conn.execute(
            "SELECT * FROM inventory_items WHERE owner_id = ? ORDER BY added_at, name",
            (owner_id,),
        ).fetchall()
        return [_to_item(r) for r in rows]

    def identities_for_owner(self, owner_id: str) -> set[str]:
        """Return the set of canonical identities in an owner's kitchen."""
        rows = self._conn.execute(
            "SELECT DISTINCT canonical_name FROM inventory_items WHERE owner_id = ?",
            (owner_id,),
        ).fetchall()
        return {r["canonical_name"] for r in rows}

    def count_for_owner(self, owner_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS n FROM inventory_items WHERE owner_id = ?",
            (owner_id,),
        ).fetchone()
        return row["n"]

    def get_expiring_soon(
        self,
        owner_id: str | None = None,
        days: int = 3,
        today: date | None = None,
        expired_within: int | None = None,
    ) -> list[InventoryItem]:
        """Return items expiring within the given number of days.

        Already-expired items are included; ``expired_within`` limits them
        to those that expired at most that many days ago. With no
        ``owner_id`` every owner's items are returned.
        """
        target = (today or date.today()).isoformat()
        query = """SELECT * FROM inventory_items
                   WHERE expiration_date IS NOT NULL
                     AND date(expiration_date) <= date(?, '+' || ? || ' days')"""
        params: list = [target, days]
        if expired_within is not None:
            query += " AND date(expiration_date) >= date(?, '-' || ? || ' days')"
            params.extend([target, expired_within])
        if owner_id is not None:
            query += " AND owner_id = ?"
            params.append(owner_id)
        query += " ORDER BY expiration_date, name"
        rows = self._conn.execute(query, params).fetchall()
        return [_to_item(r) for r in rows]

    def delete(self, item_id: str, owner_id: str) -> bool:
        """Delete an item if it belongs to ``owner_id``."""
        cur = self._conn.execute(
            "DELETE FROM inventory_items WHERE id = ? AND owner_id = ?",
            (item_id, owner_id),
        )
        return cur.rowcount > 0
