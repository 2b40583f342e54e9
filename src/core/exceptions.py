"""Custom exception classes for the Coachbook API.

All domain errors are operational: their message is safe to show to the
caller. Each error knows the HTTP status and machine-readable code it maps to
and can render the uniform error envelope.
"""

from typing import Dict, List, Optional

from fastapi import status
from fastapi.responses import JSONResponse


class CoachbookError(Exception):
    """Base exception for all Coachbook errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"

    def __init__(self, message: str):
        """Initialize the exception.

        Args:
            message: Human-readable message returned to the caller.
        """
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message, "code": self.code}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


class AuthenticationError(CoachbookError):
    """Raised when a credential or token is missing, invalid or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(CoachbookError):
    """Raised when an authenticated user lacks the role or ownership required."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class NotFoundError(CoachbookError):
    """Raised when a referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        """Initialize the exception.

        Args:
            resource: Name of the missing entity, e.g. "Session".
        """
        self.resource = resource
        super().__init__(f"{resource} not found")


class ConflictError(CoachbookError):
    """Raised when a state-transition precondition is violated."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ValidationError(CoachbookError):
    """Raised when input is malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[Dict[str, List[str]]] = None,
    ):
        """Initialize the exception.

        Args:
            message: Summary message.
            fields: Mapping of field name to the messages for that field.
        """
        self.fields = fields or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class PayloadTooLargeError(CoachbookError):
    """Raised when an uploaded file exceeds the configured size limit."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    code = "PAYLOAD_TOO_LARGE"
