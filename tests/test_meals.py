"""Tests for meal plan voting and threshold approval."""

from datetime import date

import pytest

from larder.config import load_config
from larder.db import Database
from larder.errors import AuthorizationError, NotFoundError, ValidationError
from larder.family import FamilyService
from larder.meals import MealVoteService
from larder.models import NotificationType
from larder.notifications import NotificationService


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "larder.db")


@pytest.fixture
def meals(db):
    return MealVoteService(db)


@pytest.fixture
def family(db):
    families = FamilyService(db)
    family = families.create_family("alice", "Home")
    families.add_member(family.id, "alice", "bob")
    families.add_member(family.id, "alice", "dana")
    return family


def _meal_votes(db, user_id):
    return [n for n in NotificationService(db).unread(user_id) if n.type is NotificationType.MEAL_VOTE]


def test_create_plan(meals, family):
    plan = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)
    assert plan.is_approved is False
    assert plan.scheduled_for == "2026-10-20"


def test_create_plan_validation(meals):
    with pytest.raises(ValidationError):
        meals.create_plan("alice", "lasagna", "someday")
    with pytest.raises(ValidationError):
        meals.create_plan("alice", "", "2026-10-20")


def test_create_plan_for_foreign_family(meals, family):
    with pytest.raises(AuthorizationError):
        meals.create_plan("carol", "lasagna", "2026-10-20", family_id=family.id)


def test_default_threshold_approves(db, meals, family):
    """Two upvotes approve a plan when the family sets no threshold."""
    plan = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)

    first = meals.vote(plan.id, "alice", True)
    assert first.upvotes == 1
    assert first.threshold == 2
    assert first.newly_approved is False
    assert _meal_votes(db, "bob") == []

    second = meals.vote(plan.id, "bob", True)
    assert second.newly_approved is True
    assert second.meal_plan.is_approved is True
    for member in ("alice", "bob", "dana"):
        assert len(_meal_votes(db, member)) == 1


def test_only_the_flipping_vote_notifies(db, meals, family):
    plan = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)
    meals.vote(plan.id, "alice", True)
    meals.vote(plan.id, "bob", True)
    third = meals.vote(plan.id, "dana", True)

    assert third.newly_approved is False
    assert third.meal_plan.is_approved is True
    assert len(_meal_votes(db, "dana")) == 1


def test_revote_replaces(meals, family):
    """One vote per user; voting again changes it."""
    plan = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)
    meals.vote(plan.id, "alice", True)
    outcome = meals.vote(plan.id, "alice", True)
    assert outcome.upvotes == 1

    outcome = meals.vote(plan.id, "alice", False)
    assert outcome.upvotes == 0
    assert meals.votes(plan.id, "bob") == {"alice": False}


def test_family_threshold(db, family):
    families = FamilyService(db)
    strict = families.create_family("alice", "Strict", vote_threshold=3)
    families.add_member(strict.id, "alice", "bob")
    meals = MealVoteService(db)
    plan = meals.create_plan("alice", "stew", "2026-10-21", family_id=strict.id)

    meals.vote(plan.id, "alice")
    outcome = meals.vote(plan.id, "bob")
    assert outcome.threshold == 3
    assert outcome.meal_plan.is_approved is False


def test_personal_plan_notifies_owner(db):
    meals = MealVoteService(db, default_threshold=1)
    plan = meals.create_plan("carol", "toast", "2026-10-22")
    outcome = meals.vote(plan.id, "carol")

    assert outcome.newly_approved is True
    assert len(_meal_votes(db, "carol")) == 1


def test_outsider_cannot_vote(meals, family):
    plan = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)
    with pytest.raises(AuthorizationError):
        meals.vote(plan.id, "carol", True)
    with pytest.raises(NotFoundError):
        meals.vote("missing", "alice", True)


def test_invalid_default_threshold(db):
    with pytest.raises(ValidationError):
        MealVoteService(db, default_threshold=0)


class TestFromConfig:
    def test_configured_default_threshold(self, db, family):
        """``[family] default_vote_threshold`` moves the approval point."""
        config = load_config()
        config.family.default_vote_threshold = 3
        meals = MealVoteService.from_config(config, db)
        plan = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)

        meals.vote(plan.id, "alice")
        second = meals.vote(plan.id, "bob")
        assert second.threshold == 3
        assert second.meal_plan.is_approved is False
        assert meals.vote(plan.id, "dana").newly_approved is True

    def test_threshold_of_one(self, db, family):
        config = load_config()
        config.family.default_vote_threshold = 1
        meals = MealVoteService.from_config(config, db)
        plan = meals.create_plan("alice", "soup", "2026-10-20", family_id=family.id)
        assert meals.vote(plan.id, "bob").newly_approved is True

    def test_family_threshold_still_wins(self, db):
        families = FamilyService(db)
        strict = families.create_family("alice", "Strict", vote_threshold=2)
        config = load_config()
        config.family.default_vote_threshold = 1
        meals = MealVoteService.from_config(config, db)
        plan = meals.create_plan("alice", "stew", "2026-10-21", family_id=strict.id)
        assert meals.vote(plan.id, "alice").threshold == 2

    def test_invalid_configured_threshold(self, db):
        config = load_config()
        config.family.default_vote_threshold = 0
        with pytest.raises(ValidationError):
            MealVoteService.from_config(config, db)


class TestListing:
    TODAY = date(2026, 10, 17)

    def test_plans_for_from_today(self, meals, family):
        """Past plans drop out; the rest come back soonest first."""
        meals.create_plan("alice", "old", "2026-10-16", family_id=family.id)
        later = meals.create_plan("alice", "later", "2026-10-25", family_id=family.id)
        today = meals.create_plan("alice", "today", "2026-10-17", family_id=family.id)

        plans = meals.plans_for("alice", today=self.TODAY)
        assert [s.meal_plan.id for s in plans] == [today.id, later.id]

    def test_family_plans_are_visible_to_members(self, meals, family):
        shared = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)
        meals.create_plan("alice", "private", "2026-10-20")
        own = meals.create_plan("bob", "toast", "2026-10-21")

        ids = [s.meal_plan.id for s in meals.plans_for("bob", today=self.TODAY)]
        assert ids == [shared.id, own.id]
        assert meals.plans_for("carol", today=self.TODAY) == []

    def test_votes_and_own_vote(self, meals, family):
        plan = meals.create_plan("alice", "lasagna", "2026-10-20", family_id=family.id)
        meals.vote(plan.id, "alice", True)
        meals.vote(plan.id, "bob", False)

        [summary] = meals.plans_for("bob", today=self.TODAY)
        assert summary.votes == {"alice": True, "bob": False}
        assert summary.user_vote is False
        assert summary.upvotes == 1
        [summary] = meals.plans_for("dana", today=self.TODAY)
        assert summary.user_vote is None

    def test_upcoming_window_and_limit(self, meals):
        for day in range(17, 30):
            meals.create_plan("carol", f"dish-{day}", f"2026-10-{day}")

        week = meals.upcoming("carol", days=7, limit=10, today=self.TODAY)
        assert [s.meal_plan.recipe_id for s in week] == [f"dish-{d}" for d in range(17, 25)]
        assert len(meals.upcoming("carol", today=self.TODAY)) == 5

    def test_upcoming_validation(self, meals):
        with pytest.raises(ValidationError):
            meals.upcoming("carol", days=-1)
        with pytest.raises(ValidationError):
            meals.upcoming("carol", limit=0)
