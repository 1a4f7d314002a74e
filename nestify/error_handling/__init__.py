"""
Error handling module for the Nestify API.

Provides the application error taxonomy and the FastAPI handlers that turn
it into uniform JSON responses.
"""

from .errors import (
    NestifyError,
    NotFoundError,
    PropertyNotFound,
    PromoterNotFound,
    UserNotFound,
    ValidationError,
    AuthenticationError,
    PermissionDenied,
    ConflictError,
    StoreError,
)
from .handlers import register_exception_handlers

__all__ = [
    'NestifyError',
    'NotFoundError',
    'PropertyNotFound',
    'PromoterNotFound',
    'UserNotFound',
    'ValidationError',
    'AuthenticationError',
    'PermissionDenied',
    'ConflictError',
    'StoreError',
    'register_exception_handlers',
]
