"""Leaderboard snapshots frozen at a cutoff, and prize issuance for winners."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from prizeboard.services.clock import is_iso
from prizeboard.services.codes import CodeRegistry, PrizeCode, find_player_code
from prizeboard.services.errors import BadCutoffError
from prizeboard.services.ranking import clamp_limit, rank_best
from prizeboard.services.scores import ScoreEntry
from prizeboard.storage.document import Document, DocumentStore

WINNER_COUNT = 3


@dataclass(slots=True, frozen=True)
class SnapshotRow:
    id: int
    cutoff_at: str
    rank: int
    player_id: str
    score: int
    code: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> SnapshotRow:
        return cls(
            id=int(row["id"]),
            cutoff_at=row["cutoff_at"],
            rank=int(row["rank"]),
            player_id=row["player_id"],
            score=int(row["score"]),
            code=row.get("code"),
        )

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class Winner:
    rank: int
    player_id: str
    score: int
    ts: str
    attempts: int
    code: str | None = None


@dataclass(slots=True)
class FinalizeResult:
    cutoff: str
    winners: list[Winner]
    issued: list[PrizeCode] = field(default_factory=list)
    snapshot_created: bool = False

    @property
    def issued_count(self) -> int:
        return len(self.issued)


def require_cutoff(cutoff: object) -> str:
    if not is_iso(cutoff):
        raise BadCutoffError(cutoff)
    return cutoff  # type: ignore[return-value]


def snapshot_rows(document: Document, cutoff: str) -> list[SnapshotRow]:
    rows = [SnapshotRow.from_row(row) for row in document["leaderboard_snapshots"] if row["cutoff_at"] == cutoff]
    return sorted(rows, key=lambda row: row.rank)


class SnapshotStore:
    def __init__(self, store: DocumentStore, codes: CodeRegistry):
        self.store = store
        self.codes = codes

    async def finalize(self, cutoff: str, top: int = 10) -> FinalizeResult:
        """Freeze the ranking at ``cutoff`` and issue codes to the top three.

        The snapshot row-set is written only the first time a cutoff is
        finalized. Issuance runs on every call and only creates codes for
        winners that do not already hold one, so retrying is safe.
        """
        cutoff = require_cutoff(cutoff)
        top = clamp_limit(top)

        async with self.store.transaction() as document:
            entries = [ScoreEntry.from_row(row) for row in document["scores"]]
            ranked = rank_best(entries, cutoff)[:top]

            issued: list[PrizeCode] = []
            for position, player in enumerate(ranked[:WINNER_COUNT], start=1):
                if find_player_code(document, player.player_id) is None:
                    issued.append(self.codes.issue_in(document, player.player_id, position))

            codes = {
                player.player_id: (find_player_code(document, player.player_id) or {}).get("code")
                for player in ranked
            }

            snapshot_created = bool(ranked) and not snapshot_rows(document, cutoff)
            if snapshot_created:
                snapshots = document["leaderboard_snapshots"]
                for position, player in enumerate(ranked, start=1):
                    row = SnapshotRow(
                        id=len(snapshots) + 1,
                        cutoff_at=cutoff,
                        rank=position,
                        player_id=player.player_id,
                        score=player.score,
                        code=codes[player.player_id],
                    )
                    snapshots.append(row.to_row())

        winners = [
            Winner(
                rank=position,
                player_id=player.player_id,
                score=player.score,
                ts=player.ts,
                attempts=player.attempts,
                code=codes[player.player_id],
            )
            for position, player in enumerate(ranked[:WINNER_COUNT], start=1)
        ]
        return FinalizeResult(
            cutoff=cutoff,
            winners=winners,
            issued=issued,
            snapshot_created=snapshot_created,
        )

    async def snapshot_of(self, cutoff: str) -> list[SnapshotRow]:
        cutoff = require_cutoff(cutoff)
        return snapshot_rows(await self.store.read(), cutoff)

    async def winners_of(self, cutoff: str) -> list[SnapshotRow]:
        return (await self.snapshot_of(cutoff))[:WINNER_COUNT]
