"""Tests for the propose / approve / reject review workflow."""

import sqlite3
import threading

import pytest

from larder.db import Database
from larder.db.inventory import InventoryRepository
from larder.errors import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    TransactionFailure,
    ValidationError,
)
from larder.family import FamilyService
from larder.inventory import InventoryService
from larder.models import Category, ListItemStatus, NotificationType, ReviewStatus
from larder.notifications import NotificationService
from larder.review import ReviewWorkflow
from larder.shopping import ShoppingService


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "larder.db")


@pytest.fixture
def household(db):
    """Alice (admin) and Bob share a family list; Carol is an outsider."""
    families = FamilyService(db)
    family = families.create_family("alice", "Home")
    families.add_member(family.id, "alice", "bob")
    shopping = ShoppingService(db)
    shopping_list = shopping.create_list("alice", "Groceries", family_id=family.id)
    item = shopping.add_item(shopping_list.id, "bob", "Tomatoes", quantity=3)
    return {
        "family": family,
        "list": shopping_list,
        "item": item,
        "families": families,
        "shopping": shopping,
    }


@pytest.fixture
def workflow(db):
    return ReviewWorkflow(db)


def _item_status(household):
    detail = household["shopping"].get_list(household["list"].id, "alice")
    return next(i.status for i in detail.items if i.id == household["item"].id)


class TestPropose:
    def test_propose_from_shopping_item(self, workflow, household):
        """A family member can send a bought item to the list owner's kitchen."""
        entry = workflow.propose(
            "bob", "Tomatoes", "alice", quantity=3, source_item_id=household["item"].id
        )
        assert entry.status is ReviewStatus.PENDING
        assert entry.canonical_name == "tomato"
        assert entry.category_guess is Category.FRIDGE
        assert entry.owner_id == "alice"
        assert _item_status(household) is ListItemStatus.PENDING_REVIEW

    def test_notifies_target_owner(self, db, workflow, household):
        entry = workflow.propose("bob", "Tomatoes", "alice", source_item_id=household["item"].id)
        unread = NotificationService(db).unread("alice")
        assert len(unread) == 1
        assert unread[0].type is NotificationType.REVIEW_REQUIRED
        assert unread[0].payload["reviewEntryId"] == entry.id

    def test_no_notification_for_own_kitchen(self, db, workflow):
        workflow.propose("alice", "Milk", "alice")
        assert NotificationService(db).unread("alice") == []

    def test_blank_name(self, workflow):
        with pytest.raises(ValidationError):
            workflow.propose("alice", "  ", "alice")

    def test_bad_quantity(self, workflow):
        with pytest.raises(ValidationError):
            workflow.propose("alice", "Milk", "alice", quantity=-2)

    def test_without_source_only_for_self(self, workflow):
        with pytest.raises(AuthorizationError):
            workflow.propose("bob", "Milk", "alice")

    def test_missing_source_item(self, workflow):
        with pytest.raises(NotFoundError):
            workflow.propose("alice", "Milk", "alice", source_item_id="missing")

    def test_outsider_cannot_propose_from_list(self, workflow, household):
        with pytest.raises(AuthorizationError):
            workflow.propose("carol", "Tomatoes", "carol", source_item_id=household["item"].id)
        assert _item_status(household) is ListItemStatus.ACTIVE

    def test_target_must_be_related(self, workflow, household):
        """The kitchen has to belong to the owner, the proposer or the family."""
        with pytest.raises(AuthorizationError):
            workflow.propose("bob", "Tomatoes", "carol", source_item_id=household["item"].id)

    def test_target_can_be_family_member(self, db, workflow, household):
        """A member who neither owns the list nor proposes can receive the item."""
        household["families"].add_member(household["family"].id, "alice", "dave")
        entry = workflow.propose(
            "bob", "Tomatoes", "dave", quantity=3, source_item_id=household["item"].id
        )
        assert entry.owner_id == "dave"
        assert _item_status(household) is ListItemStatus.PENDING_REVIEW

        result = workflow.approve(entry.id, "dave")
        assert result.inventory_item.owner_id == "dave"
        assert InventoryService(db).identities("dave") == {"tomato"}
        assert InventoryService(db).identities("alice") == set()

    def test_removed_member_is_no_longer_a_target(self, workflow, household):
        household["families"].add_member(household["family"].id, "alice", "dave")
        household["families"].remove_member(household["family"].id, "alice", "dave")
        with pytest.raises(AuthorizationError):
            workflow.propose("bob", "Tomatoes", "dave", source_item_id=household["item"].id)

    def test_bought_source_item(self, workflow, household):
        household["shopping"].set_item_status(household["item"].id, "alice", "bought")
        with pytest.raises(StateConflictError):
            workflow.propose("alice", "Tomatoes", "alice", source_item_id=household["item"].id)


class TestApprove:
    def test_approve_stocks_inventory(self, db, workflow, household):
        entry = workflow.propose(
            "bob", "Tomatoes", "alice", quantity=3, source_item_id=household["item"].id
        )
        result = workflow.approve(entry.id, "alice")

        assert result.review_entry.status is ReviewStatus.APPROVED
        assert result.review_entry.reviewer_id == "alice"
        assert result.inventory_item.owner_id == "alice"
        assert result.inventory_item.canonical_name == "tomato"
        assert result.inventory_item.quantity == 3
        assert result.inventory_item.source_item_id == household["item"].id
        assert _item_status(household) is ListItemStatus.BOUGHT
        assert InventoryService(db).identities("alice") == {"tomato"}

    def test_quantity_defaults_to_one(self, workflow):
        entry = workflow.propose("alice", "Milk", "alice")
        assert workflow.approve(entry.id, "alice").inventory_item.quantity == 1.0

    def test_family_member_can_review(self, workflow, household):
        entry = workflow.propose("alice", "Tomatoes", "alice", source_item_id=household["item"].id)
        assert workflow.approve(entry.id, "bob").review_entry.reviewer_id == "bob"

    def test_approved_is_terminal(self, db, workflow):
        entry = workflow.propose("alice", "Milk", "alice")
        workflow.approve(entry.id, "alice")
        with pytest.raises(StateConflictError):
            workflow.approve(entry.id, "alice")
        assert len(InventoryService(db).list_items("alice")) == 1
        with pytest.raises(StateConflictError):
            workflow.reject(entry.id, "alice")

    def test_unknown_entry(self, workflow):
        with pytest.raises(NotFoundError):
            workflow.approve("missing", "alice")

    def test_outsider_cannot_approve(self, workflow, household):
        entry = workflow.propose("bob", "Tomatoes", "alice", source_item_id=household["item"].id)
        with pytest.raises(AuthorizationError):
            workflow.approve(entry.id, "carol")
        assert workflow.get(entry.id).status is ReviewStatus.PENDING

    def test_authorization_checked_before_state(self, workflow):
        """An outsider learns nothing about an entry's state."""
        entry = workflow.propose("alice", "Milk", "alice")
        workflow.approve(entry.id, "alice")
        with pytest.raises(AuthorizationError):
            workflow.approve(entry.id, "carol")

    def test_membership_rechecked_at_review(self, workflow, household):
        """A member removed after proposing can no longer review."""
        entry = workflow.propose("bob", "Tomatoes", "bob", source_item_id=household["item"].id)
        household["families"].remove_member(household["family"].id, "alice", "bob")
        with pytest.raises(AuthorizationError):
            workflow.approve(entry.id, "bob")
        assert workflow.get(entry.id).status is ReviewStatus.PENDING

    def test_failed_approval_applies_nothing(self, db, workflow, household, monkeypatch):
        """Storage failure mid-approval leaves entry, list and kitchen untouched."""
        entry = workflow.propose("bob", "Tomatoes", "alice", source_item_id=household["item"].id)

        def boom(self, *args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(InventoryRepository, "add", boom)
        with pytest.raises(TransactionFailure):
            workflow.approve(entry.id, "alice")
        monkeypatch.undo()

        assert workflow.get(entry.id).status is ReviewStatus.PENDING
        assert _item_status(household) is ListItemStatus.PENDING_REVIEW
        assert InventoryService(db).list_items("alice") == []

    def test_concurrent_approvals_single_winner(self, db, workflow):
        entry = workflow.propose("alice", "Milk", "alice")
        results, errors = [], []
        barrier = threading.Barrier(4)

        def approve():
            barrier.wait()
            try:
                results.append(ReviewWorkflow(db).approve(entry.id, "alice"))
            except StateConflictError as e:
                errors.append(e)

        threads = [threading.Thread(target=approve) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 1
        assert len(errors) == 3
        assert len(InventoryService(db).list_items("alice")) == 1


class TestReject:
    def test_reject_returns_item_to_list(self, db, workflow, household):
        entry = workflow.propose("bob", "Tomatoes", "alice", source_item_id=household["item"].id)
        rejected = workflow.reject(entry.id, "alice")

        assert rejected.status is ReviewStatus.REJECTED
        assert _item_status(household) is ListItemStatus.ACTIVE
        assert InventoryService(db).list_items("alice") == []

    def test_rejected_is_terminal(self, workflow):
        entry = workflow.propose("alice", "Milk", "alice")
        workflow.reject(entry.id, "alice")
        with pytest.raises(StateConflictError):
            workflow.approve(entry.id, "alice")

    def test_item_can_be_proposed_again(self, workflow, household):
        item_id = household["item"].id
        first = workflow.propose("bob", "Tomatoes", "alice", source_item_id=item_id)
        workflow.reject(first.id, "alice")
        second = workflow.propose("bob", "Tomatoes", "alice", source_item_id=item_id)
        workflow.approve(second.id, "alice")
        assert _item_status(household) is ListItemStatus.BOUGHT

    def test_reject_leaves_bought_item_bought(self, workflow, household):
        item_id = household["item"].id
        first = workflow.propose("bob", "Tomatoes", "alice", source_item_id=item_id)
        second = workflow.propose("alice", "Tomatoes", "alice", source_item_id=item_id)
        workflow.approve(second.id, "alice")
        workflow.reject(first.id, "alice")
        assert _item_status(household) is ListItemStatus.BOUGHT


def test_pending_for_owner(workflow):
    first = workflow.propose("alice", "Milk", "alice")
    second = workflow.propose("alice", "Eggs", "alice")
    workflow.approve(first.id, "alice")
    assert [e.id for e in workflow.pending_for("alice")] == [second.id]
