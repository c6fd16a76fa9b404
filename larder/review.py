"""Review workflow: proposed ingredients on their way into a kitchen.

An entry starts ``pending`` and ends either ``approved`` (an inventory
item is created for the target owner and the originating shopping item is
marked bought) or ``rejected`` (the shopping item goes back on the list).
Both end states are terminal. Each transition runs as one unit of work:
the authorization re-check, the status change and the inventory and list
side effects commit together or not at all.
"""

from __future__ import annotations

import logging

from .access import AccessRow, authorize
from .db import Database, Transaction
from .errors import AuthorizationError, NotFoundError, StateConflictError
from .models import (
    ApprovalResult,
    Category,
    ListItem,
    ListItemStatus,
    NotificationType,
    ReviewEntry,
    ReviewStatus,
)
from .normalizer import guess_category, normalize
from .validation import optional_quantity, parse_enum, require_id, require_text

logger = logging.getLogger(__name__)


class ReviewWorkflow:
    """Propose, approve and reject review entries."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def propose(
        self,
        proposer_id: str,
        name: str,
        target_owner_id: str,
        *,
        quantity: float | None = None,
        unit: str | None = None,
        image_url: str | None = None,
        source_item_id: str | None = None,
        category: Category | str | None = None,
    ) -> ReviewEntry:
        """Create a pending entry for ``target_owner_id``'s kitchen.

        With a source shopping item, the proposer must have access to the
        item's list and the target must be the list owner, the proposer,
        or a member of the list's family. Without one, proposers can only
        target their own kitchen. The source item moves to
        ``pending_review`` in the same transaction.

        Raises:
            ValidationError: blank name, bad quantity or category.
            NotFoundError: the source item does not exist.
            AuthorizationError: the proposer may not file this entry.
            StateConflictError: the source item was already bought.
        """
        proposer_id = require_id(proposer_id, "proposer_id")
        target_owner_id = require_id(target_owner_id, "target_owner_id")
        name = require_text(name, "name")
        quantity = optional_quantity(quantity)
        category_guess = parse_enum(Category, category, "category") or guess_category(name)
        canonical_name = normalize(name)

        def work(tx: Transaction) -> ReviewEntry:
            if source_item_id is not None:
                self._authorize_proposal(tx, proposer_id, target_owner_id, source_item_id)
            elif target_owner_id != proposer_id:
                logger.warning(
                    "%s tried to propose %r for %s without a source item",
                    proposer_id, name, target_owner_id,
                )
                raise AuthorizationError(
                    "items without a source list item can only be proposed "
                    "for the proposer's own kitchen"
                )

            entry = tx.reviews.create(
                proposer_id,
                target_owner_id,
                name,
                canonical_name,
                category_guess=category_guess,
                quantity=quantity,
                unit=unit,
                image_url=image_url,
                source_item_id=source_item_id,
            )
            if source_item_id is not None:
                tx.lists.set_item_status(source_item_id, ListItemStatus.PENDING_REVIEW)
            if target_owner_id != proposer_id:
                tx.notifications.create(
                    target_owner_id,
                    NotificationType.REVIEW_REQUIRED,
                    title=f"Review {name}",
                    message=f"{name} is waiting to be added to your kitchen.",
                    payload={
                        "reviewEntryId": entry.id,
                        "itemName": name,
                        "proposerId": proposer_id,
                    },
                )
            return entry

        entry = self._db.run(work)
        logger.info(
            "Review entry %s proposed by %s for %s (%s)",
            entry.id, proposer_id, target_owner_id, canonical_name,
        )
        return entry

    def approve(self, entry_id: str, reviewer_id: str) -> ApprovalResult:
        """Approve a pending entry and stock the target owner's kitchen.

        Raises:
            NotFoundError: no such entry.
            AuthorizationError: the reviewer may not review this entry.
            StateConflictError: the entry is already approved or rejected.
            TransactionFailure: storage aborted; nothing was applied.
        """

        def work(tx: Transaction) -> ApprovalResult:
            entry, source_item = self._load_for_review(tx, entry_id, reviewer_id)
            resolved = self._resolve(tx, entry, ReviewStatus.APPROVED, reviewer_id)
            inventory_item = tx.inventory.add(
                resolved.owner_id,
                resolved.name,
                resolved.canonical_name,
                category=resolved.category_guess,
                quantity=resolved.quantity if resolved.quantity is not None else 1.0,
                unit=resolved.unit,
                image_url=resolved.image_url,
                source_item_id=resolved.source_item_id,
            )
            if source_item is not None:
                tx.lists.set_item_status(source_item.id, ListItemStatus.BOUGHT)
            return ApprovalResult(review_entry=resolved, inventory_item=inventory_item)

        result = self._db.run(work)
        logger.info(
            "Review entry %s approved by %s; inventory item %s",
            entry_id, reviewer_id, result.inventory_item.id,
        )
        return result

    def reject(self, entry_id: str, reviewer_id: str) -> ReviewEntry:
        """Reject a pending entry and put its shopping item back on the list.

        Raises the same errors as :meth:`approve`.
        """

        def work(tx: Transaction) -> ReviewEntry:
            entry, source_item = self._load_for_review(tx, entry_id, reviewer_id)
            resolved = self._resolve(tx, entry, ReviewStatus.REJECTED, reviewer_id)
            # An item bought through another entry stays bought.
            if source_item is not None and source_item.status is ListItemStatus.PENDING_REVIEW:
                tx.lists.set_item_status(source_item.id, ListItemStatus.ACTIVE)
            return resolved

        entry = self._db.run(work)
        logger.info("Review entry %s rejected by %s", entry_id, reviewer_id)
        return entry

    def pending_for(self, owner_id: str) -> list[ReviewEntry]:
        """Pending entries headed for ``owner_id``'s kitchen, newest first."""
        with self._db.transaction(readonly=True) as tx:
            return tx.reviews.pending_for_owner(owner_id)

    def get(self, entry_id: str) -> ReviewEntry:
        with self._db.transaction(readonly=True) as tx:
            entry = tx.reviews.get(entry_id)
        if entry is None:
            raise NotFoundError(f"review entry {entry_id} not found")
        return entry

    # -- helpers ------------------------------------------------------------

    def _authorize_proposal(
        self,
        tx: Transaction,
        proposer_id: str,
        target_owner_id: str,
        source_item_id: str,
    ) -> None:
        item = tx.lists.get_item(source_item_id)
        if item is None:
            raise NotFoundError(f"shopping item {source_item_id} not found")
        if item.status is ListItemStatus.BOUGHT:
            raise StateConflictError(f"shopping item {source_item_id} is already bought")

        row = authorize(
            tx.lists.access_row(item.list_id, proposer_id),
            proposer_id,
            "shopping list",
            item.list_id,
        )

        if not self._may_receive(tx, row, proposer_id, target_owner_id):
            logger.warning(
                "%s tried to send %s to unrelated user %s",
                proposer_id, source_item_id, target_owner_id,
            )
            raise AuthorizationError(
                f"{target_owner_id} is not the list owner, the proposer, "
                "or a member of the list's family"
            )

    @staticmethod
    def _may_receive(
        tx: Transaction,
        row: AccessRow,
        proposer_id: str,
        target_owner_id: str,
    ) -> bool:
        if target_owner_id in (row.owner_id, proposer_id):
            return True
        if row.family_id is None:
            return False
        return tx.families.is_member(row.family_id, target_owner_id)

    def _load_for_review(
        self,
        tx: Transaction,
        entry_id: str,
        reviewer_id: str,
    ) -> tuple[ReviewEntry, ListItem | None]:
        """Fetch an entry and re-check the reviewer inside the transaction.

        Family membership is read again here rather than trusted from
        propose time, since it may have changed in between.
        """
        entry = tx.reviews.get(entry_id)
        if entry is None:
            raise NotFoundError(f"review entry {entry_id} not found")

        source_item = (
            tx.lists.get_item(entry.source_item_id) if entry.source_item_id else None
        )
        if source_item is not None:
            authorize(
                tx.lists.access_row(source_item.list_id, reviewer_id),
                reviewer_id,
                "shopping list",
                source_item.list_id,
            )
        elif entry.owner_id != reviewer_id:
            logger.warning("%s denied review of entry %s", reviewer_id, entry_id)
            raise AuthorizationError(f"no access to review entry {entry_id}")

        if entry.is_terminal:
            raise StateConflictError(
                f"review entry {entry_id} is already {entry.status.value}"
            )
        return entry, source_item

    @staticmethod
    def _resolve(
        tx: Transaction,
        entry: ReviewEntry,
        status: ReviewStatus,
        reviewer_id: str,
    ) -> ReviewEntry:
        resolved = tx.reviews.resolve(entry.id, status, reviewer_id)
        if resolved is None:
            raise StateConflictError(f"review entry {entry.id} was resolved concurrently")
        return resolved
