from __future__ import annotations

from typing import Any

from prizeboard.services.errors import (
    CodeSpaceExhausted,
    Conflict,
    Expired,
    NotFound,
    PrizeboardError,
    RateLimited,
    Unauthorized,
    ValidationError,
)

STATUS_BY_ERROR: list[tuple[type[PrizeboardError], int]] = [
    (ValidationError, 400),
    (Unauthorized, 401),
    (NotFound, 404),
    (Conflict, 409),
    (Expired, 409),
    (RateLimited, 429),
    (CodeSpaceExhausted, 500),
]


class APIError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    @classmethod
    def from_domain(cls, exc: PrizeboardError) -> APIError:
        status_code = next(
            (status for error_type, status in STATUS_BY_ERROR if isinstance(exc, error_type)),
            500,
        )
        return cls(code=exc.code, message=exc.message, status_code=status_code, details=exc.details)
