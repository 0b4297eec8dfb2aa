# Overview: Domain error taxonomy shared by services and routes.

"""
Every service-level failure a caller can act on is one of these classes.

Routes catch DomainError and answer {"error": str(exc)} with exc.status_code.
Anything else is a bug: it is logged and answered with a 500.
"""


class DomainError(Exception):
    """Base class for expected, caller-visible failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(DomainError, ValueError):
    """400-level input problem."""
    status_code = 400


class NoActiveSessionError(DomainError):
    """A sale/expense mutation was attempted with no active business day."""
    status_code = 400

    def __init__(self, message: str = "No active session. Please start a new business day first.", details: dict | None = None):
        super().__init__(message, details)


class PastSessionReadOnlyError(DomainError):
    """Sales and expenses of a day other than today cannot be changed."""
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Business rule conflict (occupied table, active session deletion, duplicate name)."""
    status_code = 400


class InvalidStateError(DomainError):
    """Operation not allowed in the entity's current lifecycle state."""
    status_code = 400


class AuthenticationError(DomainError):
    status_code = 401


class PermissionDeniedError(DomainError):
    status_code = 403
