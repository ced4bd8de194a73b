"""Score submission and leaderboard reads over the shared document store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from prizeboard.services.audit import AuditLog
from prizeboard.services.clock import Clock, is_iso, utcnow
from prizeboard.services.codes import CodeRegistry, find_player_code, generate_prize_code
from prizeboard.services.errors import BadCutoffError, ValidationError
from prizeboard.services.public_code import public_code_for
from prizeboard.services.ranking import DEFAULT_LIMIT, clamp_limit, rank_attempts, rank_best, rank_of
from prizeboard.services.scores import ScoreEntry, ScoreStore
from prizeboard.services.snapshots import SnapshotStore
from prizeboard.storage.document import Document, DocumentStore

RankingMode = Literal["best", "attempts"]
RANKING_MODES = ("best", "attempts")


@dataclass(slots=True)
class SubmitResult:
    entry: ScoreEntry
    best: bool
    prize_code: str | None
    rank: int | None
    total_players: int
    pub_code: str


@dataclass(slots=True)
class LeaderboardRow:
    rank: int
    player_id: str
    score: int
    ts: str
    code: str | None
    pub_code: str
    attempts: int | None = None


def _log_entries(document: Document) -> list[ScoreEntry]:
    return [ScoreEntry.from_row(row) for row in document["scores"]]


def _code_of(document: Document, player_id: str) -> str | None:
    row = find_player_code(document, player_id)
    return row["code"] if row is not None else None


class LeaderboardService:
    def __init__(
        self,
        store: DocumentStore,
        public_salt: str,
        clock: Clock = utcnow,
        code_generator: Callable[[], str] = generate_prize_code,
    ):
        self.store = store
        self.public_salt = public_salt
        self.scores = ScoreStore(store, clock)
        self.codes = CodeRegistry(store, clock, code_generator)
        self.snapshots = SnapshotStore(store, self.codes)
        self.audit = AuditLog(store, clock)

    def public_code(self, player_id: str) -> str:
        return public_code_for(player_id, self.public_salt)

    async def submit_score(
        self,
        player_id: str,
        score: int,
        ts: str | None = None,
        ip: str | None = None,
        ua: str | None = None,
    ) -> SubmitResult:
        entry = await self.scores.append(player_id, score, timestamp=ts, ip=ip, ua=ua)

        document = await self.store.read()
        entries = _log_entries(document)
        best_score = max(e.score for e in entries if e.player_id == player_id)
        position = rank_of(entries, player_id)

        return SubmitResult(
            entry=entry,
            best=best_score == entry.score,
            prize_code=_code_of(document, player_id),
            rank=position.rank if position else None,
            total_players=position.total_players if position else 0,
            pub_code=self.public_code(player_id),
        )

    async def get_leaderboard(
        self,
        limit: int = DEFAULT_LIMIT,
        cutoff: str | None = None,
        mode: RankingMode = "best",
    ) -> list[LeaderboardRow]:
        if cutoff is not None and not is_iso(cutoff):
            raise BadCutoffError(cutoff)
        if mode not in RANKING_MODES:
            raise ValidationError("mode must be 'best' or 'attempts'", details={"mode": mode})
        limit = clamp_limit(limit)

        document = await self.store.read()
        entries = _log_entries(document)

        if mode == "attempts":
            return [
                LeaderboardRow(
                    rank=index,
                    player_id=entry.player_id,
                    score=entry.score,
                    ts=entry.ts,
                    code=_code_of(document, entry.player_id),
                    pub_code=self.public_code(entry.player_id),
                )
                for index, entry in enumerate(rank_attempts(entries, cutoff, limit), start=1)
            ]

        return [
            LeaderboardRow(
                rank=index,
                player_id=player.player_id,
                score=player.score,
                ts=player.ts,
                code=_code_of(document, player.player_id),
                pub_code=self.public_code(player.player_id),
                attempts=player.attempts,
            )
            for index, player in enumerate(rank_best(entries, cutoff)[:limit], start=1)
        ]

    async def ping(self) -> bool:
        return await self.store.ping()
