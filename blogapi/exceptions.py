"""
Error kinds raised by the services and translated into the response envelope
by the handlers registered in ``blogapi.main``.
"""

from typing import Any, Dict, Optional

from fastapi import status


class BlogAPIError(Exception):
    """Base class for every business-rule failure."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details
        if error_code:
            self.error_code = error_code
        super().__init__(message)


class NotFoundError(BlogAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class UnauthorizedError(BlogAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"


class InvalidCredentialsError(UnauthorizedError):
    error_code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid username/email or password", **kwargs):
        super().__init__(message, **kwargs)


class ForbiddenError(BlogAPIError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class ConflictError(BlogAPIError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class DuplicateEmailError(ConflictError):
    error_code = "DUPLICATE_EMAIL"

    def __init__(self, email: str):
        super().__init__("Email already exists", details={"field": "email", "value": email})


class DuplicateUsernameError(ConflictError):
    error_code = "DUPLICATE_USERNAME"

    def __init__(self, username: str):
        super().__init__("Username already exists", details={"field": "username", "value": username})


class ValidationFailedError(BlogAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_FAILED"


class InvalidOperationError(BlogAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_OPERATION"


class TokenError(UnauthorizedError):
    error_code = "INVALID_TOKEN"


class TokenExpiredError(TokenError):
    error_code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class TokenMalformedError(TokenError):
    error_code = "TOKEN_MALFORMED"

    def __init__(self, message: str = "Could not validate token"):
        super().__init__(message)
