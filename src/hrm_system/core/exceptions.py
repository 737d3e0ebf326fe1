from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class AuthenticationError(AuthorizationError):
    """Raised when the caller cannot be identified: bad credentials, missing or invalid token."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when an action conflicts with the current state of the data."""


class IncompleteDataError(DomainError):
    """Raised when a workflow transition is attempted with missing scores."""

    def __init__(self, message: str, *, missing: Iterable[int] = ()):
        super().__init__(message)
        self.missing = sorted(int(x) for x in missing)
