"""Per-user notification inbox."""

from __future__ import annotations

import logging

from .db import Database
from .errors import AuthorizationError, NotFoundError, ValidationError
from .models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, database: Database) -> None:
        self._db = database

    def unread(self, user_id: str) -> list[Notification]:
        with self._db.transaction(readonly=True) as tx:
            return tx.notifications.unread_for(user_id)

    def recent(self, user_id: str, limit: int = 20) -> list[Notification]:
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}")
        with self._db.transaction(readonly=True) as tx:
            return tx.notifications.recent_for(user_id, limit)

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark one notification read. Already-read notifications are left as is."""
        with self._db.transaction() as tx:
            notification = tx.notifications.get(notification_id)
            if notification is None:
                raise NotFoundError(f"notification {notification_id} not found")
            if notification.recipient_id != user_id:
                logger.warning("%s denied access to notification %s", user_id, notification_id)
                raise AuthorizationError(f"no access to notification {notification_id}")
            return tx.notifications.mark_read(notification_id)

    def mark_all_read(self, user_id: str) -> int:
        with self._db.transaction() as tx:
            return tx.notifications.mark_all_read(user_id)
