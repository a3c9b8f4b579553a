"""
Core module initialization.
Exports settings and the API error types.
"""

from quickserve.core.config import get_settings, Settings, EnvironmentMode
from quickserve.core.errors import (
    ApiError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationFailed,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "ApiError",
    "AuthenticationError",
    "ConflictError",
    "NotFoundError",
    "ValidationFailed",
]
