"""Error taxonomy shared by services and routes.

Services raise these; `promptpolish.main` renders them as JSON responses.
The `detail` of auth, ownership, upstream and persistence errors is
deliberately generic; specifics go to the server log only.
"""
from typing import Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationError(AppError):
    """Malformed or out-of-enum input. Carries one message per invalid field."""

    status_code = 400
    detail = "Invalid request data"

    def __init__(self, errors: list[dict[str, str]], detail: Optional[str] = None):
        self.errors = errors
        super().__init__(detail)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class AuthError(AppError):
    status_code = 401
    detail = "Not authenticated"


class AccessDenied(AppError):
    status_code = 403
    detail = "Access denied"


class NotFound(AppError):
    status_code = 404
    detail = "Not found"


class RateLimited(AppError):
    status_code = 429
    detail = "Too many requests"


class UpstreamError(AppError):
    """The generative model call failed (network, timeout, error status)."""

    status_code = 500
    detail = "Error contacting the language model"


class PersistenceError(AppError):
    status_code = 500
    detail = "Error accessing storage"
