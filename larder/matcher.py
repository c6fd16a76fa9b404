"""Recipe matching against a household's kitchen inventory."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .errors import ValidationError
from .models import Recipe, RecipeIngredient, RecipeMatch
from .normalizer import normalize

if TYPE_CHECKING:
    from .db import Database


def classify_ingredients(
    recipe: Recipe,
    identities: set[str] | frozenset[str],
) -> tuple[list[RecipeIngredient], list[RecipeIngredient]]:
    """Split a recipe's ingredients into (owned, missing).

    ``identities`` must already be canonical; recipe ingredient names are
    normalized here so both sides are compared on canonical identity.
    """
    owned: list[RecipeIngredient] = []
    missing: list[RecipeIngredient] = []
    for ing in recipe.ingredients:
        if normalize(ing.name) in identities:
            owned.append(ing)
        else:
            missing.append(ing)
    return owned, missing


def match_percentage(owned_count: int, total: int) -> int:
    """Whole-number share of owned ingredients, rounded down.

    A recipe with no ingredients scores 0: nothing can be claimed about it.
    """
    if total <= 0:
        return 0
    return owned_count * 100 // total


def match_recipe(recipe: Recipe, identities: set[str] | frozenset[str]) -> RecipeMatch:
    owned, missing = classify_ingredients(recipe, identities)
    return RecipeMatch(
        recipe=recipe,
        match_percentage=match_percentage(len(owned), len(recipe.ingredients)),
        owned_ingredients=owned,
        missing_ingredients=missing,
    )


def match_recipes(
    recipes: Iterable[Recipe],
    identities: set[str] | frozenset[str],
    min_match: int = 0,
) -> list[RecipeMatch]:
    """Annotate recipes with match statistics for recommendation surfaces.

    Recipes below ``min_match`` percent are dropped; the rest are ordered
    with illustrated recipes first, then by match percentage, highest
    first. Ties keep their input order.
    """
    if not 0 <= min_match <= 100:
        raise ValidationError(f"min_match must be between 0 and 100, got {min_match}")

    matches = [match_recipe(r, identities) for r in recipes]
    candidates = [m for m in matches if m.match_percentage >= min_match]
    candidates.sort(key=lambda m: (m.has_image, m.match_percentage), reverse=True)
    return candidates


def match_recipes_against_inventory(
    database: Database,
    recipes: Iterable[Recipe],
    owner_id: str,
    min_match: int = 0,
) -> list[RecipeMatch]:
    """Match recipes against everything currently in ``owner_id``'s kitchen."""
    with database.transaction(readonly=True) as tx:
        identities = tx.inventory.identities_for_owner(owner_id)
    return match_recipes(recipes, identities, min_match=min_match)
