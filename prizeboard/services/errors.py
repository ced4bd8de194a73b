"""Domain errors raised by the score, code, and snapshot components."""

from __future__ import annotations

from typing import Any


class PrizeboardError(Exception):
    code = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(PrizeboardError):
    code = "bad_request"


class BadCutoffError(ValidationError):
    code = "bad_cutoff"

    def __init__(self, cutoff: object):
        super().__init__(
            "cutoff must look like YYYY-MM-DDTHH:MM:SS.sssZ",
            details={"cutoff": cutoff},
        )


class Unauthorized(PrizeboardError):
    code = "unauthorized"


class NotFound(PrizeboardError):
    code = "not_found"


class Conflict(PrizeboardError):
    code = "conflict"


class AlreadyIssued(Conflict):
    code = "already_issued"

    def __init__(self, player_id: str, existing_code: str):
        self.existing_code = existing_code
        super().__init__(
            f"Player {player_id} already holds a prize code",
            details={"code": existing_code},
        )


class AlreadyUsed(Conflict):
    code = "already_used"


class Expired(PrizeboardError):
    code = "expired"


class RateLimited(PrizeboardError):
    code = "rate_limited"


class CodeSpaceExhausted(PrizeboardError):
    """Raised when every generation attempt collided with an existing code."""

    code = "code_space_exhausted"
