# vidtube/core/errors.py
"""
Typed API errors.

Every service-level failure is raised as an ApiError subclass carrying the
HTTP status code and a human readable message. Handlers registered in
main.py turn them into the standard error envelope:

    {"statusCode": 404, "data": null, "message": "...", "success": false, "errors": []}
"""
from typing import Any, Optional


class ApiError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_envelope(self) -> dict:
        return {
            "statusCode": self.status_code,
            "data": None,
            "message": self.message,
            "success": False,
            "errors": self.errors,
        }


class ValidationError(ApiError):
    """Malformed or missing input (400)."""
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    """Bad credentials or token (401)."""
    status_code = 401
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    """Uniqueness violation (409)."""
    status_code = 409
    default_message = "Resource already exists"


class InternalError(ApiError):
    status_code = 500
    default_message = "Something went wrong"
