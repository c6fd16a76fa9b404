"""Data models for kitchen inventory, shopping lists and review entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import ValidationError


class Category(str, Enum):
    FRIDGE = "fridge"
    PANTRY = "pantry"
    OTHER = "other"


class ListItemStatus(str, Enum):
    ACTIVE = "active"
    BOUGHT = "bought"
    PENDING_REVIEW = "pending_review"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FamilyRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class NotificationType(str, Enum):
    SHOPPING_ASSIGNMENT = "shopping_assignment"
    SHOPPING_BOUGHT = "shopping_bought"
    REVIEW_REQUIRED = "review_required"
    MEAL_VOTE = "meal_vote"
    INVENTORY_EXPIRING = "inventory_expiring"


@dataclass
class InventoryItem:
    """An ingredient in one user's kitchen."""

    id: str
    owner_id: str
    name: str
    canonical_name: str
    category: Category = Category.FRIDGE
    quantity: float = 1.0
    unit: str | None = None
    image_url: str | None = None
    expiration_date: str | None = None  # ISO date
    source_item_id: str | None = None  # shopping item it came from
    added_at: str = ""


@dataclass
class ShoppingList:
    id: str
    owner_id: str
    name: str = "Shopping List"
    family_id: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ListItem:
    id: str
    list_id: str
    name: str
    canonical_name: str
    quantity: float = 1.0
    unit: str | None = None
    image_url: str | None = None
    status: ListItemStatus = ListItemStatus.ACTIVE
    assigned_to: str | None = None
    added_by: str | None = None
    added_at: str = ""
    bought_at: str | None = None


@dataclass
class ShoppingListDetail:
    """A shopping list together with its items, newest first."""

    list: ShoppingList
    items: list[ListItem] = field(default_factory=list)


@dataclass
class ReviewEntry:
    """A proposed ingredient waiting for confirmation before it joins inventory."""

    id: str
    proposer_id: str
    owner_id: str  # whose kitchen the item lands in
    name: str
    canonical_name: str
    category_guess: Category = Category.FRIDGE
    quantity: float | None = None
    unit: str | None = None
    image_url: str | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    source_item_id: str | None = None
    reviewer_id: str | None = None
    reviewed_at: str | None = None
    created_at: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status is not ReviewStatus.PENDING


@dataclass
class ApprovalResult:
    review_entry: ReviewEntry
    inventory_item: InventoryItem


@dataclass
class FamilyMember:
    family_id: str
    user_id: str
    role: FamilyRole = FamilyRole.MEMBER
    joined_at: str = ""


@dataclass
class Family:
    id: str
    name: str
    created_by: str
    vote_threshold: int | None = None
    created_at: str = ""
    members: list[FamilyMember] = field(default_factory=list)

    def member_ids(self) -> list[str]:
        return [m.user_id for m in self.members]


@dataclass
class MealPlan:
    id: str
    owner_id: str
    recipe_id: str
    scheduled_for: str
    family_id: str | None = None
    is_approved: bool = False
    created_at: str = ""


@dataclass
class VoteOutcome:
    meal_plan: MealPlan
    upvotes: int
    threshold: int
    newly_approved: bool = False


@dataclass
class MealPlanSummary:
    """A plan together with its votes, as seen by one user."""

    meal_plan: MealPlan
    votes: dict[str, bool] = field(default_factory=dict)
    user_vote: bool | None = None

    @property
    def upvotes(self) -> int:
        return sum(1 for v in self.votes.values() if v)


@dataclass
class RecipeRating:
    recipe_id: str
    user_id: str
    rating: int
    comment: str | None = None
    photo_url: str | None = None
    created_at: str = ""


@dataclass
class RatingSummary:
    recipe_id: str
    ratings: list[RecipeRating] = field(default_factory=list)
    average: float | None = None
    user_rating: RecipeRating | None = None


@dataclass
class Notification:
    id: str
    recipient_id: str
    type: NotificationType
    title: str
    message: str | None = None
    payload: dict = field(default_factory=dict)
    created_at: str = ""
    read_at: str | None = None


@dataclass
class RecipeIngredient:
    name: str
    amount: str = ""
    unit: str = ""
    image_url: str | None = None


@dataclass
class Recipe:
    id: str
    name: str
    ingredients: list[RecipeIngredient] = field(default_factory=list)
    image_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Recipe:
        """Build a Recipe from a loosely shaped dict.

        Ingredients may be plain strings or ``{"name", "amount", "unit"}``
        mappings. Anything else raises ValidationError.
        """
        if not isinstance(data, dict):
            raise ValidationError(f"recipe must be an object, got {type(data).__name__}")
        raw_ingredients = data.get("ingredients") or []
        if not isinstance(raw_ingredients, list):
            raise ValidationError("recipe ingredients must be a list")

        ingredients: list[RecipeIngredient] = []
        for raw in raw_ingredients:
            if isinstance(raw, str):
                ingredients.append(RecipeIngredient(name=raw))
            elif isinstance(raw, dict):
                if not isinstance(raw.get("name", ""), str):
                    raise ValidationError("ingredient name must be a string")
                ingredients.append(
                    RecipeIngredient(
                        name=raw.get("name", ""),
                        amount=str(raw.get("amount", "") or ""),
                        unit=raw.get("unit", "") or "",
                        image_url=raw.get("imageUrl") or raw.get("image_url"),
                    )
                )
            else:
                raise ValidationError(
                    f"ingredient must be a string or an object, got {type(raw).__name__}"
                )
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            ingredients=ingredients,
            image_url=data.get("imageUrl") or data.get("image_url"),
        )


@dataclass
class RecipeMatch:
    """A recipe annotated with how much of it the household already owns."""

    recipe: Recipe
    match_percentage: int
    owned_ingredients: list[RecipeIngredient] = field(default_factory=list)
    missing_ingredients: list[RecipeIngredient] = field(default_factory=list)

    @property
    def has_image(self) -> bool:
        return bool(self.recipe.image_url)

    def to_dict(self) -> dict:
        return {
            "id": self.recipe.id,
            "name": self.recipe.name,
            "imageUrl": self.recipe.image_url,
            "matchPercentage": self.match_percentage,
            "ownedIngredients": [i.name for i in self.owned_ingredients],
            "missingIngredients": [i.name for i in self.missing_ingredients],
        }
