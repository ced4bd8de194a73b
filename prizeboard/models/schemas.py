"""Pydantic request/response schemas for the score and prize-code API.

Request models sanitize loosely typed client input (truncating strings,
leaving numeric coercion to the score store) so rejected submissions still
reach the handler and get audited. Response models define the JSON contract.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, field_validator

from prizeboard.services.scores import MAX_PLAYER_ID_LENGTH, sanitize_player_id


class ErrorResponse(BaseModel):
    ok: Literal[False] = False
    error: str
    message: str
    details: dict[str, Any] | None = None


class ScoreSubmission(BaseModel):
    player_id: str = ""
    score: Any = None
    ts: str | None = None

    @field_validator("player_id", mode="before")
    @classmethod
    def _sanitize_player_id(cls, value: Any) -> str:
        return sanitize_player_id(value)

    @field_validator("ts", mode="before")
    @classmethod
    def _drop_non_string_ts(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class ScoreResult(BaseModel):
    ok: Literal[True] = True
    best: bool
    prize_code: str | None
    rank: int | None
    total_players: int
    pub_code: str


class LeaderboardRow(BaseModel):
    rank: int
    player_id: str
    score: int
    ts: str
    attempts: int | None = None
    code: str | None = None
    pub_code: str


class LeaderboardResponse(BaseModel):
    ok: Literal[True] = True
    leaderboard: list[LeaderboardRow]


class IssueCodeRequest(BaseModel):
    player_id: str = ""
    rank: Any = None

    @field_validator("player_id", mode="before")
    @classmethod
    def _sanitize_player_id(cls, value: Any) -> str:
        return sanitize_player_id(value)


class IssueCodeResponse(BaseModel):
    ok: Literal[True] = True
    code: str
    expires_at: str


class CodeRequest(BaseModel):
    code: str = ""

    @field_validator("code", mode="before")
    @classmethod
    def _strip_code(cls, value: Any) -> str:
        return str(value).strip() if value is not None else ""


class VerifyCodeResponse(BaseModel):
    ok: Literal[True] = True
    status: Literal["not_found", "valid", "used", "expired"]
    rank: int | None = None
    player_id: str | None = None
    expires_at: str | None = None
    used_at: str | None = None
    used_by: str | None = None


class UseCodeRequest(CodeRequest):
    used_by: str | None = None

    @field_validator("used_by", mode="before")
    @classmethod
    def _truncate_used_by(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)[:MAX_PLAYER_ID_LENGTH]


class UseCodeResponse(BaseModel):
    ok: Literal[True] = True
    used_at: str


class WinnerRow(BaseModel):
    rank: int
    player_id: str
    score: int
    ts: str | None = None
    attempts: int | None = None
    code: str | None = None


class FinalizeResponse(BaseModel):
    ok: Literal[True] = True
    cutoff: str
    winners: list[WinnerRow]
    issued_count: int


class WinnersResponse(BaseModel):
    ok: Literal[True] = True
    cutoff: str
    winners: list[WinnerRow]


class HealthResponse(BaseModel):
    status: Literal["ok"]


class ReadyResponse(BaseModel):
    status: Literal["ok"]
