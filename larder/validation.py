"""Input checks shared by the service layer.

Everything here runs before a transaction is opened.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import TypeVar

from .errors import ValidationError

E = TypeVar("E", bound=Enum)


def require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be blank")
    return value.strip()


def require_id(value: str | None, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field} is required")
    return value


def optional_quantity(value: float | None, field: str = "quantity") -> float | None:
    if value is None:
        return None
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}") from None
    if quantity <= 0:
        raise ValidationError(f"{field} must be positive, got {quantity}")
    return quantity


def parse_enum(enum_type: type[E], value: E | str | None, field: str) -> E | None:
    if value is None or isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        choices = ", ".join(e.value for e in enum_type)
        raise ValidationError(f"{field} must be one of {choices}, got {value!r}") from None


def optional_date(value: str | date | None, field: str) -> str | None:
    """Accept a date or ISO date string and return it in ISO form."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO date, got {value!r}") from None
