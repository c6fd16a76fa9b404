"""Household kitchen inventory with family-shared shopping and review."""

from .access import Access, AccessRow, authorize, require_access, resolve_access
from .config import (
    DatabaseConfig,
    FamilyConfig,
    LarderConfig,
    LoggingConfig,
    MatcherConfig,
    SchedulerConfig,
    load_config,
)
from .db import Database, Transaction
from .errors import (
    AuthorizationError,
    LarderError,
    NotFoundError,
    StateConflictError,
    TransactionFailure,
    ValidationError,
)
from .family import FamilyService
from .inventory import InventoryService
from .matcher import match_recipe, match_recipes, match_recipes_against_inventory
from .meals import MealVoteService
from .models import (
    ApprovalResult,
    Category,
    Family,
    FamilyMember,
    FamilyRole,
    InventoryItem,
    ListItem,
    ListItemStatus,
    MealPlan,
    MealPlanSummary,
    Notification,
    NotificationType,
    RatingSummary,
    Recipe,
    RecipeIngredient,
    RecipeMatch,
    RecipeRating,
    ReviewEntry,
    ReviewStatus,
    ShoppingList,
    ShoppingListDetail,
    VoteOutcome,
)
from .normalizer import guess_category, ingredients_match, normalize
from .notifications import NotificationService
from .ratings import RatingService
from .review import ReviewWorkflow
from .shopping import ShoppingService

__all__ = [
    "Access",
    "AccessRow",
    "authorize",
    "require_access",
    "resolve_access",
    "Database",
    "Transaction",
    "LarderConfig",
    "DatabaseConfig",
    "MatcherConfig",
    "FamilyConfig",
    "SchedulerConfig",
    "LoggingConfig",
    "load_config",
    "LarderError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "StateConflictError",
    "TransactionFailure",
    "InventoryService",
    "ShoppingService",
    "ReviewWorkflow",
    "FamilyService",
    "MealVoteService",
    "NotificationService",
    "RatingService",
    "normalize",
    "ingredients_match",
    "guess_category",
    "match_recipe",
    "match_recipes",
    "match_recipes_against_inventory",
    "Category",
    "InventoryItem",
    "ShoppingList",
    "ShoppingListDetail",
    "ListItem",
    "ListItemStatus",
    "ReviewEntry",
    "ReviewStatus",
    "ApprovalResult",
    "Family",
    "FamilyMember",
    "FamilyRole",
    "MealPlan",
    "MealPlanSummary",
    "VoteOutcome",
    "Notification",
    "NotificationType",
    "Recipe",
    "RecipeIngredient",
    "RecipeMatch",
    "RecipeRating",
    "RatingSummary",
]
