"""Family-shared shopping lists."""

from __future__ import annotations

import logging

from .access import Access, AccessRow, authorize, resolve_access
from .db import Database, Transaction
from .errors import AuthorizationError, NotFoundError
from .models import (
    ListItem,
    ListItemStatus,
    NotificationType,
    RecipeMatch,
    ShoppingList,
    ShoppingListDetail,
)
from .normalizer import normalize
from .validation import optional_quantity, parse_enum, require_id, require_text

logger = logging.getLogger(__name__)


class ShoppingService:
    """Shopping list operations gated by the list's owner and family."""

    def __init__(self, database: Database) -> None:
        self._db = database

    # -- lists --------------------------------------------------------------

    def create_list(
        self,
        owner_id: str,
        name: str = "Shopping List",
        family_id: str | None = None,
    ) -> ShoppingList:
        owner_id = require_id(owner_id, "owner_id")
        name = require_text(name, "name")
        with self._db.transaction() as tx:
            if family_id is not None:
                if tx.families.get(family_id) is None:
                    raise NotFoundError(f"family {family_id} not found")
                if not tx.families.is_member(family_id, owner_id):
                    raise AuthorizationError(f"{owner_id} is not a member of family {family_id}")
            return tx.lists.create(owner_id, name, family_id)

    def lists_for(self, user_id: str) -> list[ShoppingList]:
        with self._db.transaction(readonly=True) as tx:
            return tx.lists.lists_for_user(user_id)

    def get_list(self, list_id: str, caller_id: str) -> ShoppingListDetail:
        with self._db.transaction(readonly=True) as tx:
            self._require_list_access(tx, list_id, caller_id)
            return ShoppingListDetail(
                list=tx.lists.get(list_id),
                items=tx.lists.items_for_list(list_id),
            )

    def rename_list(self, list_id: str, caller_id: str, name: str) -> ShoppingList:
        name = require_text(name, "name")
        with self._db.transaction() as tx:
            self._require_list_access(tx, list_id, caller_id)
            return tx.lists.rename(list_id, name)

    def delete_list(self, list_id: str, caller_id: str) -> None:
        with self._db.transaction() as tx:
            self._require_list_access(tx, list_id, caller_id)
            tx.lists.delete(list_id)
        logger.info("Shopping list %s deleted by %s", list_id, caller_id)

    def access(self, list_id: str, caller_id: str) -> Access:
        """Tri-state access of ``caller_id`` to a list, without raising."""
        with self._db.transaction(readonly=True) as tx:
            return resolve_access(tx.lists.access_row(list_id, caller_id), caller_id)

    # -- items --------------------------------------------------------------

    def add_item(
        self,
        list_id: str,
        caller_id: str,
        name: str,
        *,
        quantity: float = 1.0,
        unit: str | None = None,
        image_url: str | None = None,
    ) -> ListItem:
        name = require_text(name, "name")
        quantity = optional_quantity(quantity) or 1.0
        with self._db.transaction() as tx:
            self._require_list_access(tx, list_id, caller_id)
            return tx.lists.add_item(
                list_id,
                name,
                normalize(name),
                quantity=quantity,
                unit=unit,
                image_url=image_url,
                added_by=caller_id,
            )

    def set_item_status(
        self,
        item_id: str,
        caller_id: str,
        status: ListItemStatus | str,
    ) -> ListItem:
        status = parse_enum(ListItemStatus, status, "status")
        with self._db.transaction() as tx:
            item, row = self._require_item_access(tx, item_id, caller_id)
            updated = tx.lists.set_item_status(item_id, status)
            if status is ListItemStatus.BOUGHT and caller_id != row.owner_id:
                tx.notifications.create(
                    row.owner_id,
                    NotificationType.SHOPPING_BOUGHT,
                    title=f"{item.name} was bought",
                    payload={"itemId": item.id, "itemName": item.name, "buyerId": caller_id},
                )
            return updated

    def assign_item(
        self,
        item_id: str,
        caller_id: str,
        assignee_id: str | None,
    ) -> ListItem:
        """Assign an item to someone who can see the list, or clear it."""
        with self._db.transaction() as tx:
            item, row = self._require_item_access(tx, item_id, caller_id)
            if assignee_id is not None:
                assignee_row = tx.lists.access_row(row.resource_id, assignee_id)
                if resolve_access(assignee_row, assignee_id) is not Access.AUTHORIZED:
                    raise AuthorizationError(
                        f"{assignee_id} has no access to shopping list {row.resource_id}"
                    )
            updated = tx.lists.assign_item(item_id, assignee_id)
            if assignee_id is not None and assignee_id != caller_id:
                tx.notifications.create(
                    assignee_id,
                    NotificationType.SHOPPING_ASSIGNMENT,
                    title=f"Please pick up {item.name}",
                    payload={"itemId": item.id, "itemName": item.name, "assignerId": caller_id},
                )
            return updated

    def delete_item(self, item_id: str, caller_id: str) -> None:
        with self._db.transaction() as tx:
            self._require_item_access(tx, item_id, caller_id)
            tx.lists.delete_item(item_id)

    def add_missing_ingredients(
        self,
        list_id: str,
        caller_id: str,
        match: RecipeMatch,
    ) -> list[ListItem]:
        """Put a recipe's missing ingredients on a list.

        Ingredients already active on the list (by canonical identity) are
        skipped, as are duplicates within the recipe itself.
        """
        with self._db.transaction() as tx:
            self._require_list_access(tx, list_id, caller_id)
            on_list = {
                i.canonical_name
                for i in tx.lists.items_for_list(list_id)
                if i.status is ListItemStatus.ACTIVE
            }
            added: list[ListItem] = []
            for ing in match.missing_ingredients:
                if not ing.name.strip():
                    continue
                identity = normalize(ing.name)
                if identity in on_list:
                    continue
                on_list.add(identity)
                added.append(
                    tx.lists.add_item(
                        list_id,
                        ing.name.strip(),
                        identity,
                        unit=ing.unit or None,
                        image_url=ing.image_url,
                        added_by=caller_id,
                    )
                )
        logger.info(
            "Added %d missing ingredient(s) of %s to list %s",
            len(added), match.recipe.name, list_id,
        )
        return added

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _require_list_access(tx: Transaction, list_id: str, caller_id: str) -> AccessRow:
        row = tx.lists.access_row(list_id, caller_id)
        return authorize(row, caller_id, "shopping list", list_id)

    def _require_item_access(
        self,
        tx: Transaction,
        item_id: str,
        caller_id: str,
    ) -> tuple[ListItem, AccessRow]:
        item = tx.lists.get_item(item_id)
        if item is None:
            raise NotFoundError(f"shopping item {item_id} not found")
        return item, self._require_list_access(tx, item.list_id, caller_id)
