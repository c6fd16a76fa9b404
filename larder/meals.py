"""Meal plans that a family approves by voting."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from .access import authorize
from .db import Database, Transaction
from .errors import AuthorizationError, NotFoundError, ValidationError
from .models import MealPlan, MealPlanSummary, NotificationType, VoteOutcome
from .validation import optional_date, require_id, require_text

logger = logging.getLogger(__name__)

DEFAULT_VOTE_THRESHOLD = 2


class MealVoteService:
    """Create meal plans and collect votes on them.

    A plan is approved once its upvotes reach the family's vote threshold,
    or ``default_threshold`` when the family sets none. Approval and the
    ``meal_vote`` notifications it sends commit together with the vote
    that crossed the threshold.
    """

    def __init__(
        self,
        database: Database,
        default_threshold: int = DEFAULT_VOTE_THRESHOLD,
    ) -> None:
        if default_threshold < 1:
            raise ValidationError(f"default_threshold must be at least 1, got {default_threshold}")
        self._db = database
        self._default_threshold = default_threshold

    @classmethod
    def from_config(cls, config, database: Database) -> MealVoteService:
        """Build the service with ``[family] default_vote_threshold`` from a LarderConfig."""
        return cls(database, default_threshold=config.family.default_vote_threshold)

    @property
    def default_threshold(self) -> int:
        return self._default_threshold

    def create_plan(
        self,
        user_id: str,
        recipe_id: str,
        scheduled_for: str | date,
        family_id: str | None = None,
    ) -> MealPlan:
        user_id = require_id(user_id, "user_id")
        recipe_id = require_text(recipe_id, "recipe_id")
        scheduled = optional_date(scheduled_for, "scheduled_for")
        if scheduled is None:
            raise ValidationError("scheduled_for is required")

        with self._db.transaction() as tx:
            if family_id is not None:
                if tx.families.get(family_id) is None:
                    raise NotFoundError(f"family {family_id} not found")
                if not tx.families.is_member(family_id, user_id):
                    raise AuthorizationError(f"{user_id} is not a member of family {family_id}")
            plan = tx.meal_plans.create(user_id, recipe_id, scheduled, family_id)
        logger.info("Meal plan %s for %s on %s created by %s", plan.id, recipe_id, scheduled, user_id)
        return plan

    def get(self, plan_id: str, caller_id: str) -> MealPlan:
        with self._db.transaction(readonly=True) as tx:
            self._require_plan_access(tx, plan_id, caller_id)
            return tx.meal_plans.get(plan_id)

    def vote(self, plan_id: str, voter_id: str, upvote: bool = True) -> VoteOutcome:
        voter_id = require_id(voter_id, "voter_id")

        def work(tx: Transaction) -> VoteOutcome:
            self._require_plan_access(tx, plan_id, voter_id)
            tx.meal_plans.upsert_vote(plan_id, voter_id, bool(upvote))
            plan = tx.meal_plans.get(plan_id)
            upvotes = tx.meal_plans.count_upvotes(plan_id)
            threshold = self._threshold(tx, plan)

            newly_approved = False
            if upvotes >= threshold and tx.meal_plans.mark_approved(plan_id):
                newly_approved = True
                plan.is_approved = True
                self._notify_approved(tx, plan, upvotes)
            return VoteOutcome(
                meal_plan=plan,
                upvotes=upvotes,
                threshold=threshold,
                newly_approved=newly_approved,
            )

        outcome = self._db.run(work)
        if outcome.newly_approved:
            logger.info(
                "Meal plan %s approved with %d/%d upvotes",
                plan_id, outcome.upvotes, outcome.threshold,
            )
        return outcome

    def votes(self, plan_id: str, caller_id: str) -> dict[str, bool]:
        with self._db.transaction(readonly=True) as tx:
            self._require_plan_access(tx, plan_id, caller_id)
            return tx.meal_plans.votes(plan_id)

    def plans_for(self, user_id: str, today: date | None = None) -> list[MealPlanSummary]:
        """Every plan visible to ``user_id`` from today on, soonest first."""
        user_id = require_id(user_id, "user_id")
        since = (today or date.today()).isoformat()
        with self._db.transaction(readonly=True) as tx:
            plans = tx.meal_plans.plans_for_user(user_id, since)
            return [self._summarize(tx, plan, user_id) for plan in plans]

    def upcoming(
        self,
        user_id: str,
        days: int = 7,
        limit: int = 5,
        today: date | None = None,
    ) -> list[MealPlanSummary]:
        """The next few plans scheduled within ``days`` days."""
        user_id = require_id(user_id, "user_id")
        if days < 0:
            raise ValidationError(f"days must not be negative, got {days}")
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}")
        start = today or date.today()
        with self._db.transaction(readonly=True) as tx:
            plans = tx.meal_plans.plans_for_user(
                user_id,
                start.isoformat(),
                until=(start + timedelta(days=days)).isoformat(),
                limit=limit,
            )
            return [self._summarize(tx, plan, user_id) for plan in plans]

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _require_plan_access(tx: Transaction, plan_id: str, caller_id: str) -> None:
        authorize(tx.meal_plans.access_row(plan_id, caller_id), caller_id, "meal plan", plan_id)

    @staticmethod
    def _summarize(tx: Transaction, plan: MealPlan, user_id: str) -> MealPlanSummary:
        votes = tx.meal_plans.votes(plan.id)
        return MealPlanSummary(meal_plan=plan, votes=votes, user_vote=votes.get(user_id))

    def _threshold(self, tx: Transaction, plan: MealPlan) -> int:
        if plan.family_id is not None:
            family = tx.families.get(plan.family_id)
            if family is not None and family.vote_threshold:
                return family.vote_threshold
        return self._default_threshold

    @staticmethod
    def _notify_approved(tx: Transaction, plan: MealPlan, upvotes: int) -> None:
        if plan.family_id is not None:
            recipients = [m.user_id for m in tx.families.members(plan.family_id)]
        else:
            recipients = [plan.owner_id]
        for recipient in recipients:
            tx.notifications.create(
                recipient,
                NotificationType.MEAL_VOTE,
                title="Meal plan approved",
                message=f"{plan.recipe_id} is on the menu for {plan.scheduled_for}.",
                payload={
                    "mealPlanId": plan.id,
                    "recipeId": plan.recipe_id,
                    "scheduledFor": plan.scheduled_for,
                    "upvotes": upvotes,
                },
            )
