"""
Domain error taxonomy
All errors subclass HTTPException so services can raise them directly,
the same way route handlers do.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base class: carries a stable machine-readable code next to the message"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "ERROR"
    message = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        extra: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.message
        self.code = code or self.code
        self.extra = extra or {}
        super().__init__(status_code=self.status_code, detail=self.message, headers=headers)

    def to_dict(self) -> dict[str, Any]:
        body = {"success": False, "error": self.message, "code": self.code}
        body.update(self.extra)
        return body


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_STATE"
    message = "Request conflicts with the current state"


class ApplicationClosed(ConflictError):
    code = "APPLICATION_CLOSED"
    message = "Application is closed; no further status changes are accepted"


class EmailAlreadyRegistered(ConflictError):
    code = "EMAIL_EXISTS"
    message = "An account with this email already exists"


class DependencyFailure(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "DEPENDENCY_FAILURE"
    message = "A required service is temporarily unavailable"


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    message = "Not authenticated"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code, headers={"WWW-Authenticate": "Bearer"})


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "INSUFFICIENT_PERMISSIONS"
    message = "You do not have permission to perform this action"


# ============================================================================
# TOKEN ERRORS
# ============================================================================


class TokenError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "TOKEN_ERROR"
    message = "Registration link is not valid"


class InvalidToken(TokenError):
    code = "INVALID_TOKEN"
    message = "This registration link is invalid"


class TokenExpired(TokenError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "TOKEN_EXPIRED"
    message = "This registration link has expired"

    def __init__(self, message: Optional[str] = None, claims: Optional[dict[str, Any]] = None):
        super().__init__(message)
        # Signature was valid; claims let callers look up the backing record
        self.claims = claims or {}


class WrongTokenIntent(TokenError):
    code = "INVALID_TOKEN_TYPE"
    message = "This link cannot be used for this action"


class TokenAlreadyUsed(TokenError):
    code = "TOKEN_ALREADY_USED"
    message = "This registration link has already been used"
