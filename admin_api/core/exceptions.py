"""Custom exception classes for the admin console."""

from typing import Optional

from fastapi import HTTPException, status


class AdminAPIError(Exception):
    """Base exception for the admin console.

    ``code`` is a stable machine-readable reason (e.g. ``DuplicateName``)
    rendered next to the message by the API exception handler.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "Error"

    def __init__(self, message: str = "An error occurred", code: Optional[str] = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)


class AuthenticationError(AdminAPIError):
    """Raised when authentication fails."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "NotAuthenticated"


class AuthorizationError(AdminAPIError):
    """Raised when an admin lacks the required privilege."""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "AuthorizationDenied"

    def __init__(self, message: str = "Insufficient privileges", code: Optional[str] = None):
        super().__init__(message, code)


class ResourceNotFoundError(AdminAPIError):
    """Raised when a referenced admin, role or permission does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NotFound"


class ResourceConflictError(AdminAPIError):
    """Raised when a request collides with existing state."""
    status_code = status.HTTP_409_CONFLICT
    default_code = "Conflict"


class ValidationError(AdminAPIError):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "ValidationError"


class InvalidOperationError(AdminAPIError):
    """Raised when valid input is refused because of the current state."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "InvalidOperation"


class ServiceUnavailableError(AdminAPIError):
    """Raised when the database or another collaborator is unreachable."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "Unavailable"


# HTTP exception shortcuts
def unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def unavailable(detail: str = "Service temporarily unavailable") -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
