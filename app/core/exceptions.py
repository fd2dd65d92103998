"""Application exceptions.

HTTP-facing errors subclass ``HTTPException`` so route handlers and services can
raise them directly; ``ConfigurationError`` is raised by the pipeline itself and
translated at the API boundary.
"""

from fastapi import HTTPException, status


class ConfigurationError(Exception):
    """A unit of work cannot run because its inputs are misconfigured.

    Examples: unmapped industry, unsupported country, missing gateway API key.
    Never retried automatically.
    """


class BadRequestError(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class QuotaExceededError(HTTPException):
    """Manual-run quota exhausted for the rolling window."""

    def __init__(self, detail: str, retry_after_hours: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={"Retry-After": str(retry_after_hours * 3600)},
        )
        self.retry_after_hours = retry_after_hours


class TrackingFailedError(HTTPException):
    def __init__(self, detail: str = "Tracking failed"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
