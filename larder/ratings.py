"""Recipe ratings: one 1-5 star rating per user per recipe."""

from __future__ import annotations

import logging

from .db import Database
from .errors import ValidationError
from .models import RatingSummary, RecipeRating
from .validation import require_id, require_text

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class RatingService:
    def __init__(self, database: Database) -> None:
        self._db = database

    def rate(
        self,
        user_id: str,
        recipe_id: str,
        rating: int,
        comment: str | None = None,
        photo_url: str | None = None,
    ) -> RecipeRating:
        """Rate a recipe, replacing the user's earlier rating if there is one."""
        user_id = require_id(user_id, "user_id")
        recipe_id = require_text(recipe_id, "recipe_id")
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError(f"rating must be a whole number, got {rating!r}")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                f"rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}"
            )
        if comment is not None:
            comment = comment.strip() or None

        with self._db.transaction() as tx:
            saved = tx.ratings.upsert(recipe_id, user_id, rating, comment, photo_url)
        logger.info("%s rated recipe %s: %d", user_id, recipe_id, rating)
        return saved

    def ratings_for(self, recipe_id: str) -> list[RecipeRating]:
        with self._db.transaction(readonly=True) as tx:
            return tx.ratings.for_recipe(recipe_id)

    def summary(self, recipe_id: str, user_id: str | None = None) -> RatingSummary:
        """All ratings of a recipe with their average and the caller's own."""
        ratings = self.ratings_for(recipe_id)
        average = sum(r.rating for r in ratings) / len(ratings) if ratings else None
        own = next((r for r in ratings if r.user_id == user_id), None) if user_id else None
        return RatingSummary(
            recipe_id=recipe_id,
            ratings=ratings,
            average=average,
            user_rating=own,
        )
