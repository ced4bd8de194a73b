"""Append-only score log."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

from prizeboard.services.clock import Clock, is_iso, to_iso, utcnow
from prizeboard.services.errors import ValidationError
from prizeboard.storage.document import DocumentStore

MAX_PLAYER_ID_LENGTH = 64
MIN_SCORE = 0
MAX_SCORE = 1_000_000


@dataclass(slots=True, frozen=True)
class ScoreEntry:
    id: int
    player_id: str
    score: int
    ts: str
    ip: str | None = None
    ua: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ScoreEntry:
        return cls(
            id=int(row["id"]),
            player_id=str(row["player_id"]),
            score=int(row["score"]),
            ts=str(row["ts"]),
            ip=row.get("ip"),
            ua=row.get("ua"),
        )

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


def sanitize_player_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()[:MAX_PLAYER_ID_LENGTH]


def coerce_score(value: Any) -> int:
    """Turn a client-supplied score into an int, truncating finite floats."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("score must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as exc:
            raise ValidationError("score must be a number") from exc
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError("score must be finite")
        return int(value)
    raise ValidationError("score must be a number")


def validate_submission(player_id: str, score: int) -> None:
    if not player_id or len(player_id) > MAX_PLAYER_ID_LENGTH:
        raise ValidationError(
            f"player_id must be 1-{MAX_PLAYER_ID_LENGTH} characters",
            details={"player_id": player_id},
        )
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError("score must be an integer", details={"score": score})
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(
            f"score must be between {MIN_SCORE} and {MAX_SCORE}",
            details={"score": score},
        )


class ScoreStore:
    def __init__(self, store: DocumentStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    async def append(
        self,
        player_id: str,
        score: int,
        timestamp: str | None = None,
        ip: str | None = None,
        ua: str | None = None,
    ) -> ScoreEntry:
        validate_submission(player_id, score)
        # Client clocks are only a convenience default; anything malformed is replaced.
        ts = timestamp if is_iso(timestamp) else to_iso(self.clock())
        async with self.store.transaction() as document:
            scores = document["scores"]
            entry = ScoreEntry(
                id=len(scores) + 1,
                player_id=player_id,
                score=score,
                ts=ts,
                ip=ip,
                ua=ua,
            )
            scores.append(entry.to_row())
        return entry

    async def entries(self) -> list[ScoreEntry]:
        document = await self.store.read()
        return [ScoreEntry.from_row(row) for row in document["scores"]]
