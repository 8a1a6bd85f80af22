"""Custom exception classes for the application."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trailclub.meetup.reconcile import ReconcileResult


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation, before any remote call."""

    def __init__(self, message="Validation failed.", field=None):
        """Initialize the error."""
        super().__init__(message, 400)
        self.field = field


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class RemoteOperationError(AppError):
    """Raised when the storage backend rejects or cannot complete a call."""

    def __init__(self, message="Remote operation failed."):
        """Initialize the error."""
        super().__init__(message, 502)


class PartialBatchError(AppError):
    """Raised once per reconciliation pass when some link writes failed.

    The writes that succeeded stay applied; ``result`` describes both sides.
    """

    def __init__(self, result: ReconcileResult):
        """Initialize the error."""
        failed = len(result.failures)
        total = failed + len(result.added) + len(result.removed)
        super().__init__(
            f"{failed} of {total} attendee updates failed.", 502
        )
        self.result = result
