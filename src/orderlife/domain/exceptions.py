"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated.

    ``field`` names the offending input when the failure is tied to one.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class IllegalTransitionError(ValidationError):
    """An out-of-graph status change was requested in strict mode."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Illegal status transition {current} -> {requested}", field="status"
        )
        self.current = current
        self.requested = requested


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ConcurrencyConflictError(DomainException):
    """The stored order changed between read and commit."""


class StorageError(DomainException):
    """The backing store failed transiently; the write was not applied."""
