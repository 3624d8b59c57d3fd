"""
Domain error taxonomy.

Every service raises one of these; the API layer renders them with the
status code each class carries.
"""

from typing import Any, Optional


class JobBoardError(Exception):
    """Base class for all expected domain failures."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(JobBoardError):
    """Malformed or missing input. ``details`` maps field name to message."""

    status_code = 400
    default_message = "Validation error"

    def __init__(self, details: Optional[dict[str, str]] = None, message: Optional[str] = None):
        super().__init__(message, details or {})


class ConflictError(JobBoardError):
    status_code = 409
    default_message = "Resource already exists"


class AuthError(JobBoardError):
    """Authentication failed: bad credentials, unverified email, bad token."""

    status_code = 401
    default_message = "Could not validate credentials"


class AuthorizationError(JobBoardError):
    """Authenticated, but not allowed to perform the action."""

    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(JobBoardError):
    status_code = 404
    default_message = "Not found"


class InvalidTransitionError(JobBoardError):
    status_code = 400
    default_message = "Invalid status transition"


class InternalError(JobBoardError):
    """Storage or hashing failure. The message never carries internals."""

    status_code = 500
    default_message = "Internal server error"
