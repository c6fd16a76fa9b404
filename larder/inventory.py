"""Kitchen inventory operations."""

from __future__ import annotations

import logging
from datetime import date

from .db import Database
from .errors import AuthorizationError, NotFoundError, ValidationError
from .models import Category, InventoryItem
from .normalizer import find_matching_ingredient, guess_category, normalize
from .validation import optional_date, optional_quantity, parse_enum, require_id, require_text

logger = logging.getLogger(__name__)


class InventoryService:
    """Direct additions to and removals from a user's kitchen."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def add_item(
        self,
        owner_id: str,
        name: str,
        *,
        category: Category | str | None = None,
        quantity: float = 1.0,
        unit: str | None = None,
        expiration_date: str | date | None = None,
        image_url: str | None = None,
    ) -> InventoryItem:
        owner_id = require_id(owner_id, "owner_id")
        name = require_text(name, "name")
        quantity = optional_quantity(quantity) or 1.0
        resolved_category = parse_enum(Category, category, "category") or guess_category(name)
        expiration = optional_date(expiration_date, "expiration_date")

        with self._db.transaction() as tx:
            item = tx.inventory.add(
                owner_id,
                name,
                normalize(name),
                category=resolved_category,
                quantity=quantity,
                unit=unit,
                image_url=image_url,
                expiration_date=expiration,
            )
        logger.info("Added %s (%s) to %s's kitchen", item.name, item.canonical_name, owner_id)
        return item

    def list_items(self, owner_id: str) -> list[InventoryItem]:
        with self._db.transaction(readonly=True) as tx:
            return tx.inventory.list_for_owner(owner_id)

    def identities(self, owner_id: str) -> set[str]:
        with self._db.transaction(readonly=True) as tx:
            return tx.inventory.identities_for_owner(owner_id)

    def find_matching(self, owner_id: str, name: str) -> InventoryItem | None:
        """Find an item in the owner's kitchen with the same canonical identity."""
        return find_matching_ingredient(name, self.list_items(owner_id))

    def expiring_soon(self, owner_id: str, days: int = 3) -> list[InventoryItem]:
        if days < 0:
            raise ValidationError(f"days must not be negative, got {days}")
        with self._db.transaction(readonly=True) as tx:
            return tx.inventory.get_expiring_soon(owner_id, days)

    def delete_item(self, item_id: str, caller_id: str) -> None:
        with self._db.transaction() as tx:
            item = tx.inventory.get(item_id)
            if item is None:
                raise NotFoundError(f"inventory item {item_id} not found")
            if item.owner_id != caller_id:
                logger.warning("%s denied deletion of inventory item %s", caller_id, item_id)
                raise AuthorizationError(f"inventory item {item_id} belongs to someone else")
            tx.inventory.delete(item_id, caller_id)
