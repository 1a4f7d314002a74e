"""
Error taxonomy for the Nestify API.

Every error raised on purpose by the application derives from NestifyError
and carries the HTTP status and the machine-readable code the boundary
reports. Conditions that are resolved locally (absent filters, dangling
favorite ids, already-favorited listings) are not errors and never reach
this module.
"""

from typing import Optional


class NestifyError(Exception):
    """Base exception for the Nestify API."""
    status_code: int = 500
    code: str = "SERVER_ERROR"

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(NestifyError):
    """A referenced listing, promoter or user does not exist."""
    status_code = 404
    code = "NOT_FOUND"


class PropertyNotFound(NotFoundError):
    code = "PROPERTY_NOT_FOUND"

    def __init__(self, property_id: str):
        super().__init__(f"Property not found: {property_id}")
        self.property_id = property_id


class PromoterNotFound(NotFoundError):
    code = "PROMOTER_NOT_FOUND"

    def __init__(self, promoter_id: str):
        super().__init__(f"Promoter not found: {promoter_id}")
        self.promoter_id = promoter_id


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ValidationError(NestifyError):
    """A required identifier or request body on a mutating operation is invalid."""
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(NestifyError):
    """Missing, invalid or expired credentials."""
    status_code = 401
    code = "AUTH_UNAUTHORIZED"


class PermissionDenied(NestifyError):
    """Authenticated but not allowed."""
    status_code = 403
    code = "AUTH_FORBIDDEN"


class ConflictError(NestifyError):
    """A unique field (email, phone) is already taken."""
    status_code = 409
    code = "USER_ALREADY_EXISTS"


class StoreError(NestifyError):
    """Communication with the listing or user-account store failed."""
    status_code = 500
    code = "DATABASE_ERROR"
