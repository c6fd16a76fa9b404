"""SQLite storage: schema, unit of work and per-aggregate repositories."""

from .database import DEFAULT_DB_PATH, Database, Transaction
from .families import FamilyRepository
from .inventory import InventoryRepository
from .lists import ListRepository
from .meal_plans import MealPlanRepository
from .notifications import NotificationRepository
from .ratings import RatingRepository
from .reviews import ReviewRepository
from .schema import ensure_schema

__all__ = [
    "DEFAULT_DB_PATH",
    "Database",
    "Transaction",
    "FamilyRepository",
    "InventoryRepository",
    "ListRepository",
    "MealPlanRepository",
    "NotificationRepository",
    "RatingRepository",
    "ReviewRepository",
    "ensure_schema",
]
