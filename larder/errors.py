"""Exception types raised by the larder core."""

from __future__ import annotations


class LarderError(Exception):
    """Base class for every error the core raises to its callers."""


class ValidationError(LarderError, ValueError):
    """Malformed input, rejected before storage is touched."""


class NotFoundError(LarderError):
    """The referenced resource does not exist."""


class AuthorizationError(LarderError):
    """The resource exists but the caller has no rights on it."""


class StateConflictError(LarderError):
    """A transition was attempted on a record that is no longer pending."""


class TransactionFailure(LarderError):
    """The storage transaction aborted; nothing from it was applied."""
