"""Shopping list and list item storage."""

from __future__ import annotations

import sqlite3

from ..access import AccessRow
from ..models import ListItem, ListItemStatus, ShoppingList
from .base import Repository, new_id, timestamp

# One read answers "does the list exist, who owns it, which family
# overlays it, and is the caller in that family right now".
_ACCESS_QUERY = """
SELECT l.id, l.owner_id, l.family_id, m.user_id AS member_id
FROM shopping_lists l
LEFT JOIN family_members m
       ON m.family_id = l.family_id AND m.user_id = ?
WHERE l.id = ?
"""


def _to_list(row: sqlite3.Row) -> ShoppingList:
    return ShoppingList(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        family_id=row["family_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _to_list_item(row: sqlite3.Row) -> ListItem:
    return ListItem(
        id=row["id"],
        list_id=row["list_id"],
        name=row["name"],
        canonical_name=row["canonical_name"],
        quantity=row["quantity"],
        unit=row["unit"],
        image_url=row["image_url"],
        status=ListItemStatus(row["status"]),
        assigned_to=row["assigned_to"],
        added_by=row["added_by"],
        added_at=row["added_at"],
        bought_at=row["bought_at"],
    )


class ListRepository(Repository):
    """Manages the shopping_lists and list_items tables."""

    def access_row(self, list_id: str, caller_id: str) -> AccessRow | None:
        row = self._conn.execute(_ACCESS_QUERY, (caller_id, list_id)).fetchone()
        if row is None:
            return None
        return AccessRow(
            resource_id=row["id"],
            owner_id=row["owner_id"],
            family_id=row["family_id"],
            caller_is_member=row["member_id"] is not None,
        )

    def create(
        self,
        owner_id: str,
        name: str = "Shopping List",
        family_id: str | None = None,
    ) -> ShoppingList:
        now = timestamp()
        shopping_list = ShoppingList(
            id=new_id(),
            owner_id=owner_id,
            name=name,
            family_id=family_id,
            created_at=now,
            updated_at=now,
        )
        self._conn.execute(
            """INSERT INTO shopping_lists
               (id, owner_id, family_id, name, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                shopping_list.id,
                shopping_list.owner_id,
                shopping_list.family_id,
                shopping_list.name,
                shopping_list.created_at,
                shopping_list.updated_at,
            ),
        )
        return shopping_list

    def get(self, list_id: str) -> ShoppingList | None:
        row = self._conn.execute(
            "SELECT * FROM shopping_lists WHERE id = ?", (list_id,)
        ).fetchone()
        return _to_list(row) if row else None

    def lists_for_user(self, user_id: str) -> list[ShoppingList]:
        """Lists the user owns or reaches through family membership."""
        rows = self._conn.execute(
            """SELECT DISTINCT l.* FROM shopping_lists l
               LEFT JOIN family_members m
                      ON m.family_id = l.family_id AND m.user_id = ?
               WHERE l.owner_id = ? OR m.user_id IS NOT NULL
               ORDER BY l.updated_at DESC, l.created_at DESC""",
            (user_id, user_id),
        ).fetchall()
        return [_to_list(r) for r in rows]

    def rename(self, list_id: str, name: str) -> ShoppingList | None:
        self._conn.execute(
            "UPDATE shopping_lists SET name = ?, updated_at = ? WHERE id = ?",
            (name, timestamp(), list_id),
        )
        return self.get(list_id)

    def touch(self, list_id: str) -> None:
        self._conn.execute(
            "UPDATE shopping_lists SET updated_at = ? WHERE id = ?",
            (timestamp(), list_id),
        )

    def delete(self, list_id: str) -> bool:
        cur = self._conn.execute("DELETE FROM shopping_lists WHERE id = ?", (list_id,))
        return cur.rowcount > 0

    # -- items ----------------------------------------------------------

    def add_item(
        self,
        list_id: str,
        name: str,
        canonical_name: str,
        *,
        quantity: float = 1.0,
        unit: str | None = None,
        image_url: str | None = None,
        added_by: str | None = None,
    ) -> ListItem:
        item = ListItem(
            id=new_id(),
            list_id=list_id,
            name=name,
            canonical_name=canonical_name,
            quantity=quantity,
            unit=unit,
            image_url=image_url,
            added_by=added_by,
            added_at=timestamp(),
        )
        self._conn.execute(
            """INSERT INTO list_items
               (id, list_id, name, canonical_name, quantity, unit, image_url,
                status, added_by, added_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                item.id,
                item.list_id,
                item.name,
                item.canonical_name,
                item.quantity,
                item.unit,
                item.image_url,
                item.status.value,
                item.added_by,
                item.added_at,
            ),
        )
        self.touch(list_id)
        return item

    def get_item(self, item_id: str) -> ListItem | None:
        row = self._conn.execute(
            "SELECT * FROM list_items WHERE id = ?", (item_id,)
        ).fetchone()
        return _to_list_item(row) if row else None

    def items_for_list(self, list_id: str) -> list[ListItem]:
        rows = self._conn.execute(
            "SELECT * FROM list_items WHERE list_id = ? ORDER BY added_at DESC, rowid DESC",
            (list_id,),
        ).fetchall()
        return [_to_list_item(r) for r in rows]

    def set_item_status(self, item_id: str, status: ListItemStatus) -> ListItem | None:
        bought_at = timestamp() if status is ListItemStatus.BOUGHT else None
        self._conn.execute(
            "UPDATE list_items SET status = ?, bought_at = ? WHERE id = ?",
            (status.value, bought_at, item_id),
        )
        return self.get_item(item_id)

    def assign_item(self, item_id: str, assignee_id: str | None) -> ListItem | None:
        self._conn.execute(
            "UPDATE list_items SET assigned_to = ? WHERE id = ?",
            (assignee_id, item_id),
        )
        return self.get_item(item_id)

    def delete_item(self, item_id: str) -> bool:
        cur = self._conn.execute("DELETE FROM list_items WHERE id = ?", (item_id,))
        return cur.rowcount > 0
