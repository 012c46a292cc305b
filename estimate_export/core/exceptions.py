"""Custom exception hierarchy."""

from typing import Any, Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class StorageError(AppError):
    """Raised when an object storage read or write fails."""
    pass


class PipelineError(AppError):
    """Base exception for estimate pipeline errors."""
    pass


class ScopeFormatError(PipelineError):
    """Stored scope payload cannot be turned into a line-item model.

    Carries one message per offending item so callers can show them.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class BuilderError(PipelineError):
    """A format builder received input the parser should have rejected."""
    pass


class APIError(AppError):
    """Error rendered to the caller as a JSON body with a status code.

    The body is always ``{"error": <error>, ...payload}``.
    """

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(
        self,
        error: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        **payload: Any,
    ):
        self.error = error or self.error
        if status_code is not None:
            self.status_code = status_code
        self.payload = {k: v for k, v in payload.items() if v is not None}
        super().__init__(self.error)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, **self.payload}


class UnauthorizedError(APIError):
    status_code = 401
    error = "Unauthorized"


class RateLimitExceededError(APIError):
    status_code = 429
    error = "Rate limit exceeded"

    def __init__(self, *, limit: int, remaining: int, reset: int):
        super().__init__(
            message="Too many requests. Try again after the reset time.",
            limit=limit,
            remaining=remaining,
            reset=reset,
        )


class InvalidInputError(APIError):
    status_code = 400
    error = "Invalid input"


class NotFoundError(APIError):
    status_code = 404
    error = "Not found"


class PreconditionFailedError(APIError):
    """The target exists but a prerequisite step has not run yet."""

    status_code = 400
    error = "Precondition failed"


class InternalServerError(APIError):
    status_code = 500
    error = "Internal server error"
