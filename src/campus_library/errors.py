"""
Exception taxonomy for the Campus Library API.

Repositories raise these exceptions; the HTTP layer maps each class to a
status code and the standard response envelope. Nothing in the domain or
database layers knows about HTTP beyond the ``status_code`` attribute.
"""


class LibraryError(Exception):
    """Base exception for library operations."""

    status_code = 500

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationFailed(LibraryError):
    """Raised when input is malformed or missing."""

    status_code = 400


class NotFoundError(LibraryError):
    """Raised when an entity is not found."""

    status_code = 404


class AuthenticationError(LibraryError):
    """Raised when a credential is missing or invalid."""

    status_code = 401


class PermissionDeniedError(LibraryError):
    """Raised when the caller lacks the role or ownership an operation needs."""

    status_code = 403


class ConflictError(LibraryError):
    """Raised when a precondition of a state change does not hold."""

    status_code = 400


class InvalidTransitionError(ConflictError):
    """Raised when a reservation cannot move from its current status to the requested one."""

    def __init__(self, current: str, requested: str, message: str | None = None):
        super().__init__(
            message or f"Cannot change reservation status from {current} to {requested}"
        )
        self.current = current
        self.requested = requested
