"""
API Error Taxonomy

Every error the API raises on purpose is an ``ApiError`` subclass. The
handlers registered in ``quickserve.main`` render them as::

    {"success": false, "message": "...", <extra fields>}

so clients can always surface ``message`` directly.
"""

from typing import Any, Optional


class ApiError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON error body."""
        return {"success": False, "message": self.message, **self.extra}


class ValidationFailed(ApiError):
    """400 - request data is missing or malformed."""
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(ApiError):
    """401 - token missing, expired, invalid, or user unknown."""
    status_code = 401
    default_message = "Authentication failed"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    """409 - unique constraint would be violated (duplicate email)."""
    status_code = 409
    default_message = "Conflict"


def format_validation_errors(errors: list[dict[str, Any]]) -> dict[str, str]:
    """
    Flatten Pydantic error entries into ``{field: message}``.

    The leading ``body``/``query``/``path`` location segment is dropped, so
    ``("body", "items", 0, "quantity")`` becomes ``"items.0.quantity"``.
    """
    result: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        field = ".".join(loc) or "body"
        # Keep the first message reported for a field
        result.setdefault(field, error.get("msg", "Invalid value"))
    return result
