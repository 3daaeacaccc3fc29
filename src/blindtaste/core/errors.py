"""Exceptions raised by the domain and auth layers.

Each error carries the HTTP status the API layer answers with, so route
handlers can let them propagate to the application's exception handler.
"""

from __future__ import annotations


class TastingError(Exception):
    """Base exception for tasting service errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(TastingError):
    """A tasting, wine, criterion or participant does not exist."""

    status_code = 404


class InvalidInputError(TastingError):
    """Request data is missing or malformed."""

    status_code = 400


class UnauthorizedError(TastingError):
    """Admin secret or participant session missing or invalid."""

    status_code = 401


class ForbiddenError(TastingError):
    """Caller is authenticated but may not perform the action."""

    status_code = 403


class ConflictError(TastingError):
    """Action conflicts with existing state (duplicate slug, full tasting)."""

    status_code = 409


class ConfigurationError(TastingError):
    """Server is missing required configuration."""

    status_code = 500
