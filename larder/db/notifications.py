"""Notification inbox storage."""

from __future__ import annotations

import json
import sqlite3

from ..models import Notification, NotificationType
from .base import Repository, new_id, timestamp


def _to_notification(row: sqlite3.Row) -> Notification:
    payload: dict = {}
    if row["payload"]:
        try:
            payload = json.loads(row["payload"])
        except (json.JSONDecodeError, TypeError):
            payload = {}
    return Notification(
        id=row["id"],
        recipient_id=row["recipient_id"],
        type=NotificationType(row["type"]),
        title=row["title"],
        message=row["message"],
        payload=payload,
        created_at=row["created_at"],
        read_at=row["read_at"],
    )


class NotificationRepository(Repository):
    """Manages the notifications table."""

    def create(
        self,
        recipient_id: str,
        type: NotificationType,
        title: str,
        message: str | None = None,
        payload: dict | None = None,
    ) -> Notification:
        notification = Notification(
            id=new_id(),
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            payload=payload or {},
            created_at=timestamp(),
        )
        self._conn.execute(
            """INSERT INTO notifications
               (id, recipient_id, type, title, message, payload, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                notification.id,
                notification.recipient_id,
                notification.type.value,
                notification.title,
                notification.message,
                json.dumps(notification.payload, ensure_ascii=False),
                notification.created_at,
            ),
        )
        return notification

    def get(self, notification_id: str) -> Notification | None:
        row = self._conn.execute(
            "SELECT * FROM notifications WHERE id = ?", (notification_id,)
        ).fetchone()
        return _to_notification(row) if row else None

    def unread_for(self, recipient_id: str) -> list[Notification]:
        rows = self._conn.execute(
            """SELECT * FROM notifications
               WHERE recipient_id = ? AND read_at IS NULL
               ORDER BY created_at DESC, rowid DESC""",
            (recipient_id,),
        ).fetchall()
        return [_to_notification(r) for r in rows]

    def recent_for(self, recipient_id: str, limit: int = 20) -> list[Notification]:
        rows = self._conn.execute(
            """SELECT * FROM notifications
               WHERE recipient_id = ?
               ORDER BY created_at DESC, rowid DESC
               LIMIT ?""",
            (recipient_id, limit),
        ).fetchall()
        return [_to_notification(r) for r in rows]

    def mark_read(self, notification_id: str) -> Notification | None:
        self._conn.execute(
            "UPDATE notifications SET read_at = ? WHERE id = ? AND read_at IS NULL",
            (timestamp(), notification_id),
        )
        return self.get(notification_id)

    def mark_all_read(self, recipient_id: str) -> int:
        cur = self._conn.execute(
            """UPDATE notifications SET read_at = ?
               WHERE recipient_id = ? AND read_at IS NULL""",
            (timestamp(), recipient_id),
        )
        return cur.rowcount
