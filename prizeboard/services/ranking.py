"""Pure ranking functions over the score log.

Nothing here is cached: each call derives the ranking from the entries it is
given, so results always reflect the log as read for the request.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from prizeboard.services.scores import ScoreEntry

DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 100


@dataclass(slots=True, frozen=True)
class PlayerBest:
    player_id: str
    score: int
    ts: str
    attempts: int


@dataclass(slots=True, frozen=True)
class RankPosition:
    rank: int
    total_players: int


def clamp_limit(limit: object, default: int = DEFAULT_LIMIT) -> int:
    try:
        value = int(limit)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        value = default
    return max(MIN_LIMIT, min(MAX_LIMIT, value))


def entries_at(entries: Iterable[ScoreEntry], cutoff: str | None = None) -> list[ScoreEntry]:
    if cutoff is None:
        return list(entries)
    return [entry for entry in entries if entry.ts <= cutoff]


def best_per_player(entries: Iterable[ScoreEntry]) -> list[PlayerBest]:
    """Collapse entries to one PlayerBest per player, in first-appearance order."""
    attempts: dict[str, int] = {}
    best: dict[str, ScoreEntry] = {}
    for entry in entries:
        attempts[entry.player_id] = attempts.get(entry.player_id, 0) + 1
        current = best.get(entry.player_id)
        if (
            current is None
            or entry.score > current.score
            or (entry.score == current.score and entry.ts < current.ts)
        ):
            best[entry.player_id] = entry
    return [
        PlayerBest(
            player_id=player_id,
            score=entry.score,
            ts=entry.ts,
            attempts=attempts[player_id],
        )
        for player_id, entry in best.items()
    ]


def rank_best(entries: Iterable[ScoreEntry], cutoff: str | None = None) -> list[PlayerBest]:
    players = best_per_player(entries_at(entries, cutoff))
    # sorted() is stable, so full ties keep first-appearance order.
    return sorted(players, key=lambda p: (-p.score, p.ts, p.attempts))


def rank_attempts(
    entries: Iterable[ScoreEntry],
    cutoff: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[ScoreEntry]:
    rows = sorted(entries_at(entries, cutoff), key=lambda e: (-e.score, e.ts))
    return rows[: clamp_limit(limit)]


def rank_of(
    entries: Iterable[ScoreEntry],
    player_id: str,
    cutoff: str | None = None,
) -> RankPosition | None:
    ranked = rank_best(entries, cutoff)
    for index, player in enumerate(ranked, start=1):
        if player.player_id == player_id:
            return RankPosition(rank=index, total_players=len(ranked))
    return None
