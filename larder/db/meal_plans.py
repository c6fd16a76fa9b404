"""Meal plan and vote storage."""

from __future__ import annotations

import sqlite3

from ..access import AccessRow
from ..models import MealPlan
from .base import Repository, new_id, timestamp


def _to_plan(row: sqlite3.Row) -> MealPlan:
    return MealPlan(
        id=row["id"],
        owner_id=row["owner_id"],
        recipe_id=row["recipe_id"],
        scheduled_for=row["scheduled_for"],
        family_id=row["family_id"],
        is_approved=bool(row["is_approved"]),
        created_at=row["created_at"],
    )


class MealPlanRepository(Repository):
    """Manages the meal_plans and meal_votes tables."""

    def access_row(self, plan_id: str, caller_id: str) -> AccessRow | None:
        row = self._conn.execute(
            """SELECT p.id, p.owner_id, p.family_id, m.user_id AS member_id
               FROM meal_plans p
               LEFT JOIN family_members m
                      ON m.family_id = p.family_id AND m.user_id = ?
               WHERE p.id = ?""",
            (caller_id, plan_id),
        ).fetchone()
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
        recipe_id: str,
        scheduled_for: str,
        family_id: str | None = None,
    ) -> MealPlan:
        plan = MealPlan(
            id=new_id(),
            owner_id=owner_id,
            recipe_id=recipe_id,
            scheduled_for=scheduled_for,
            family_id=family_id,
            created_at=timestamp(),
        )
        self._conn.execute(
            """INSERT INTO meal_plans
               (id, owner_id, family_id, recipe_id, scheduled_for, is_approved, created_at)
               VALUES (?, ?, ?, ?, ?, 0, ?)""",
            (
                plan.id,
                plan.owner_id,
                plan.family_id,
                plan.recipe_id,
                plan.scheduled_for,
                plan.created_at,
            ),
        )
        return plan

    def get(self, plan_id: str) -> MealPlan | None:
        row = self._conn.execute(
            "SELECT * FROM meal_plans WHERE id = ?", (plan_id,)
        ).fetchone()
        return _to_plan(row) if row else None

    def upsert_vote(self, plan_id: str, user_id: str, upvote: bool) -> None:
        """Record one vote per user per plan; a later vote replaces the earlier one."""
        self._conn.execute(
            """INSERT INTO meal_votes (meal_plan_id, user_id, vote, created_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT (meal_plan_id, user_id) DO UPDATE SET vote = excluded.vote""",
            (plan_id, user_id, int(upvote), timestamp()),
        )

    def votes(self, plan_id: str) -> dict[str, bool]:
        rows = self._conn.execute(
            "SELECT user_id, vote FROM meal_votes WHERE meal_plan_id = ?",
            (plan_id,),
        ).fetchall()
        return {r["user_id"]: bool(r["vote"]) for r in rows}

    def count_upvotes(self, plan_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS n FROM meal_votes WHERE meal_plan_id = ? AND vote = 1",
            (plan_id,),
        ).fetchone()
        return row["n"]

    def mark_approved(self, plan_id: str) -> bool:
        """Approve a plan; True only for the call that flipped it."""
        cur = self._conn.execute(
            "UPDATE meal_plans SET is_approved = 1 WHERE id = ? AND is_approved = 0",
            (plan_id,),
        )
        return cur.rowcount > 0

    def plans_for_user(
        self,
        user_id: str,
        since: str,
        until: str | None = None,
        limit: int | None = None,
    ) -> list[MealPlan]:
        """Plans the user owns or shares through a family, from ``since`` on.

        Dates are ISO strings and both bounds are inclusive.
        """
        query = """SELECT p.* FROM meal_plans p
                   WHERE (p.owner_id = ?
                          OR p.family_id IN (SELECT family_id FROM family_members
                                             WHERE user_id = ?))
                     AND date(p.scheduled_for) >= date(?)"""
        params: list = [user_id, user_id, since]
        if until is not None:
            query += " AND date(p.scheduled_for) <= date(?)"
            params.append(until)
        query += " ORDER BY p.scheduled_for, p.created_at"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        rows = self._conn.execute(query, params).fetchall()
        return [_to_plan(r) for r in rows]
