"""Recipe rating storage."""

from __future__ import annotations

import sqlite3

from ..models import RecipeRating
from .base import Repository, timestamp


def _to_rating(row: sqlite3.Row) -> RecipeRating:
    return RecipeRating(
        recipe_id=row["recipe_id"],
        user_id=row["user_id"],
        rating=row["rating"],
        comment=row["comment"],
        photo_url=row["photo_url"],
        created_at=row["created_at"],
    )


class RatingRepository(Repository):
    """Manages the recipe_ratings table."""

    def upsert(
        self,
        recipe_id: str,
        user_id: str,
        rating: int,
        comment: str | None = None,
        photo_url: str | None = None,
    ) -> RecipeRating:
        """One rating per user per recipe; rating again replaces the earlier one."""
        self._conn.execute(
            """INSERT INTO recipe_ratings
               (recipe_id, user_id, rating, comment, photo_url, created_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT (recipe_id, user_id) DO UPDATE SET
                   rating = excluded.rating,
                   comment = excluded.comment,
                   photo_url = COALESCE(excluded.photo_url, recipe_ratings.photo_url)""",
            (recipe_id, user_id, rating, comment, photo_url, timestamp()),
        )
        return self.get(recipe_id, user_id)

    def get(self, recipe_id: str, user_id: str) -> RecipeRating | None:
        row = self._conn.execute(
            "SELECT * FROM recipe_ratings WHERE recipe_id = ? AND user_id = ?",
            (recipe_id, user_id),
        ).fetchone()
        return _to_rating(row) if row else None

    def for_recipe(self, recipe_id: str) -> list[RecipeRating]:
        rows = self._conn.execute(
            "SELECT * FROM recipe_ratings WHERE recipe_id = ? ORDER BY created_at, user_id",
            (recipe_id,),
        ).fetchall()
        return [_to_rating(r) for r in rows]
