"""Tests for family-shared shopping lists."""

import pytest

from larder.access import Access
from larder.db import Database
from larder.errors import AuthorizationError, NotFoundError, ValidationError
from larder.family import FamilyService
from larder.matcher import match_recipe
from larder.models import ListItemStatus, NotificationType, Recipe
from larder.notifications import NotificationService
from larder.shopping import ShoppingService


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "larder.db")


@pytest.fixture
def shopping(db):
    return ShoppingService(db)


@pytest.fixture
def family(db):
    families = FamilyService(db)
    family = families.create_family("alice", "Home")
    families.add_member(family.id, "alice", "bob")
    return family


@pytest.fixture
def family_list(shopping, family):
    return shopping.create_list("alice", "Groceries", family_id=family.id)


class TestLists:
    def test_default_name(self, shopping):
        assert shopping.create_list("alice").name == "Shopping List"

    def test_family_list_requires_membership(self, shopping, family):
        with pytest.raises(AuthorizationError):
            shopping.create_list("carol", family_id=family.id)

    def test_family_list_requires_existing_family(self, shopping):
        with pytest.raises(NotFoundError):
            shopping.create_list("alice", family_id="missing")

    def test_lists_for_includes_shared(self, shopping, family_list):
        personal = shopping.create_list("bob", "Bob's")
        ids = {lst.id for lst in shopping.lists_for("bob")}
        assert ids == {family_list.id, personal.id}
        assert shopping.lists_for("carol") == []

    def test_access_states(self, shopping, family_list):
        assert shopping.access(family_list.id, "alice") is Access.AUTHORIZED
        assert shopping.access(family_list.id, "bob") is Access.AUTHORIZED
        assert shopping.access(family_list.id, "carol") is Access.FORBIDDEN
        assert shopping.access("missing", "alice") is Access.NOT_FOUND

    def test_personal_list_access(self, shopping):
        personal = shopping.create_list("alice")
        assert shopping.access(personal.id, "alice") is Access.AUTHORIZED
        assert shopping.access(personal.id, "bob") is Access.FORBIDDEN

    def test_get_list(self, shopping, family_list):
        shopping.add_item(family_list.id, "bob", "Milk")
        detail = shopping.get_list(family_list.id, "alice")
        assert detail.list.id == family_list.id
        assert [i.name for i in detail.items] == ["Milk"]

    def test_get_list_denied(self, shopping, family_list):
        with pytest.raises(AuthorizationError):
            shopping.get_list(family_list.id, "carol")
        with pytest.raises(NotFoundError):
            shopping.get_list("missing", "alice")

    def test_rename(self, shopping, family_list):
        assert shopping.rename_list(family_list.id, "bob", "Weekend").name == "Weekend"
        with pytest.raises(ValidationError):
            shopping.rename_list(family_list.id, "bob", "")

    def test_delete_cascades_items(self, db, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        shopping.delete_list(family_list.id, "alice")
        with db.transaction(readonly=True) as tx:
            assert tx.lists.get(family_list.id) is None
            assert tx.lists.get_item(item.id) is None

    def test_removed_member_loses_access(self, db, shopping, family, family_list):
        FamilyService(db).remove_member(family.id, "bob", "bob")
        with pytest.raises(AuthorizationError):
            shopping.add_item(family_list.id, "bob", "Milk")


class TestItems:
    def test_add_item_normalizes(self, shopping, family_list):
        item = shopping.add_item(family_list.id, "bob", "2 cups chopped tomatoes", quantity=2)
        assert item.canonical_name == "tomato"
        assert item.status is ListItemStatus.ACTIVE
        assert item.added_by == "bob"

    def test_add_item_validation(self, shopping, family_list):
        with pytest.raises(ValidationError):
            shopping.add_item(family_list.id, "bob", " ")
        with pytest.raises(ValidationError):
            shopping.add_item(family_list.id, "bob", "Milk", quantity=0)

    def test_bought_by_member_notifies_owner(self, db, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        updated = shopping.set_item_status(item.id, "bob", "bought")

        assert updated.status is ListItemStatus.BOUGHT
        assert updated.bought_at is not None
        unread = NotificationService(db).unread("alice")
        assert [n.type for n in unread] == [NotificationType.SHOPPING_BOUGHT]
        assert unread[0].payload["buyerId"] == "bob"

    def test_bought_by_owner_is_silent(self, db, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        shopping.set_item_status(item.id, "alice", ListItemStatus.BOUGHT)
        assert NotificationService(db).unread("alice") == []

    def test_reactivating_clears_bought_at(self, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        shopping.set_item_status(item.id, "alice", "bought")
        updated = shopping.set_item_status(item.id, "alice", "active")
        assert updated.bought_at is None

    def test_unknown_status(self, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        with pytest.raises(ValidationError):
            shopping.set_item_status(item.id, "alice", "lost")

    def test_assign_notifies_assignee(self, db, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        updated = shopping.assign_item(item.id, "alice", "bob")

        assert updated.assigned_to == "bob"
        unread = NotificationService(db).unread("bob")
        assert [n.type for n in unread] == [NotificationType.SHOPPING_ASSIGNMENT]

    def test_self_assignment_is_silent(self, db, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        shopping.assign_item(item.id, "bob", "bob")
        assert NotificationService(db).unread("bob") == []

    def test_assignee_needs_access(self, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        with pytest.raises(AuthorizationError):
            shopping.assign_item(item.id, "alice", "carol")

    def test_unassign(self, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        shopping.assign_item(item.id, "alice", "bob")
        assert shopping.assign_item(item.id, "alice", None).assigned_to is None

    def test_delete_item(self, shopping, family_list):
        item = shopping.add_item(family_list.id, "alice", "Milk")
        with pytest.raises(AuthorizationError):
            shopping.delete_item(item.id, "carol")
        shopping.delete_item(item.id, "bob")
        with pytest.raises(NotFoundError):
            shopping.delete_item(item.id, "bob")


def test_add_missing_ingredients(shopping, family_list):
    """Missing recipe ingredients land on the list once, by identity."""
    shopping.add_item(family_list.id, "alice", "Tomatoes")
    recipe = Recipe.from_dict({
        "id": "r1",
        "name": "Salsa",
        "ingredients": ["2 tomatoes", "1 red onion", "cilantro leaves", "fresh cilantro", "lime"],
    })
    match = match_recipe(recipe, {"lime"})

    added = shopping.add_missing_ingredients(family_list.id, "bob", match)

    assert [i.canonical_name for i in added] == ["red onion", "cilantro"]
    detail = shopping.get_list(family_list.id, "alice")
    assert len(detail.items) == 3
