"""
Custom exception classes for the StudyBuddy application.
Provides structured error handling with machine-readable error codes.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes shared with the frontend"""

    # Authentication errors (401)
    AUTH_NOT_AUTHENTICATED = "AUTH_NOT_AUTHENTICATED"
    AUTH_TOKEN_EXPIRED = "AUTH_TOKEN_EXPIRED"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"

    # Authorization errors (403)
    AUTHZ_FORBIDDEN = "AUTHZ_FORBIDDEN"
    AUTHZ_NOT_PARTICIPANT = "AUTHZ_NOT_PARTICIPANT"
    PROFILE_INCOMPLETE = "PROFILE_INCOMPLETE"

    # Resource errors (404, 409)
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    MATCH_DUPLICATE_PAIR = "MATCH_DUPLICATE_PAIR"
    MATCH_DUPLICATE_RATING = "MATCH_DUPLICATE_RATING"

    # Validation errors (400, 422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_INVALID_ARGUMENT = "VALIDATION_INVALID_ARGUMENT"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500+)
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"
    STORAGE_ERROR = "STORAGE_ERROR"


class AppException(Exception):
    """
    Base exception class for application errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SERVER_ERROR,
        status_code: int = 500,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.field = field
        self.metadata = metadata or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary"""
        response = {
            "detail": self.message,
            "code": self.code.value,
        }
        if self.field:
            response["field"] = self.field
        if self.metadata:
            response["metadata"] = self.metadata
        return response


# Authentication Errors (401)


class AuthenticationError(AppException):
    """Base authentication error"""

    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.AUTH_NOT_AUTHENTICATED,
    ):
        super().__init__(message=message, code=code, status_code=401)


class TokenExpiredError(AuthenticationError):
    def __init__(self, message: str = "Session has expired"):
        super().__init__(message=message, code=ErrorCode.AUTH_TOKEN_EXPIRED)


class TokenInvalidError(AuthenticationError):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, code=ErrorCode.AUTH_TOKEN_INVALID)


# Authorization Errors (403)


class AuthorizationError(AppException):
    """Base authorization error"""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        code: ErrorCode = ErrorCode.AUTHZ_FORBIDDEN,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=403,
            metadata=metadata,
        )


class UnauthorizedActionError(AuthorizationError):
    """Acting user is not a party to the match"""

    def __init__(self, message: str = "You are not part of this match"):
        super().__init__(message=message, code=ErrorCode.AUTHZ_NOT_PARTICIPANT)


class ProfileIncompleteError(AuthorizationError):
    """Study profile must be completed before matching"""

    def __init__(self, message: str = "Profile setup required"):
        super().__init__(
            message=message,
            code=ErrorCode.PROFILE_INCOMPLETE,
            metadata={"profile_complete": False},
        )


# Resource Errors (404, 409)


class NotFoundError(AppException):
    """Resource not found"""

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: str | None = None,
    ):
        metadata = {"resource": resource} if resource else None
        super().__init__(
            message=message,
            code=ErrorCode.RESOURCE_NOT_FOUND,
            status_code=404,
            metadata=metadata,
        )


class ConflictError(AppException):
    """Resource conflict"""

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        field: str | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            field=field,
        )


class DuplicatePairError(ConflictError):
    """A match record already exists for this pair of users"""

    def __init__(self, message: str = "A match already exists between these users"):
        super().__init__(message=message, code=ErrorCode.MATCH_DUPLICATE_PAIR)


class DuplicateRatingError(ConflictError):
    """The acting user has already rated this match"""

    def __init__(self, message: str = "Rating already provided"):
        super().__init__(
            message=message,
            code=ErrorCode.MATCH_DUPLICATE_RATING,
            field="score",
        )


# Validation Errors (400, 422)


class ValidationError(AppException):
    """Validation error"""

    def __init__(
        self,
        message: str = "Please check the submitted data",
        field: str | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=422,
            field=field,
        )


class InvalidArgumentError(ValidationError):
    """Argument out of range or otherwise unusable"""

    def __init__(
        self,
        message: str = "Invalid argument",
        field: str | None = None,
    ):
        super().__init__(
            message=message,
            field=field,
            code=ErrorCode.VALIDATION_INVALID_ARGUMENT,
        )


# Rate Limiting (429)


class RateLimitError(AppException):
    """Rate limit exceeded"""

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        retry_after: int = 60,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            status_code=429,
            metadata={"retry_after": retry_after},
        )


# Server Errors (500)


class ServerError(AppException):
    """Internal server error"""

    def __init__(
        self,
        message: str = "An internal server error occurred",
        code: ErrorCode = ErrorCode.SERVER_ERROR,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=500,
        )


class StorageError(ServerError):
    """Opaque failure of the backing store; never leaks internal detail"""

    def __init__(self, message: str = "Failed to process the request. Please try again later."):
        super().__init__(message=message, code=ErrorCode.STORAGE_ERROR)
