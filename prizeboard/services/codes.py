"""Prize code registry: issuance, verification, and one-time redemption.

Prize codes are credentials. They are drawn from a CSPRNG, expire seven days
after issuance, and can be redeemed once. A player holds at most one code.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Literal

from prizeboard.services.clock import Clock, parse_iso, to_iso, truncate_ms, utcnow
from prizeboard.services.errors import (
    AlreadyIssued,
    AlreadyUsed,
    CodeSpaceExhausted,
    Expired,
    NotFound,
    ValidationError,
)
from prizeboard.services.scores import MAX_PLAYER_ID_LENGTH
from prizeboard.storage.document import Document, DocumentStore

# No 0/O/1/I.
CODE_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
CODE_PREFIX = "DRM-"
CODE_LENGTH = 4
MAX_GENERATION_ATTEMPTS = 10
CODE_TTL = timedelta(days=7)

CodeState = Literal["not_found", "valid", "used", "expired"]

logger = logging.getLogger("prizeboard.codes")


def generate_prize_code() -> str:
    return CODE_PREFIX + "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


@dataclass(slots=True)
class PrizeCode:
    code: str
    rank: int
    player_id: str
    issued_at: str
    expires_at: str
    used_at: str | None = None
    used_by: str | None = None
    notes: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> PrizeCode:
        return cls(
            code=row["code"],
            rank=int(row["rank"]),
            player_id=row["player_id"],
            issued_at=row["issued_at"],
            expires_at=row["expires_at"],
            used_at=row.get("used_at"),
            used_by=row.get("used_by"),
            notes=row.get("notes"),
        )

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    def is_expired(self, now: datetime) -> bool:
        return now > parse_iso(self.expires_at)


@dataclass(slots=True, frozen=True)
class CodeStatus:
    status: CodeState
    rank: int | None = None
    player_id: str | None = None
    expires_at: str | None = None
    used_at: str | None = None
    used_by: str | None = None


def coerce_rank(value: Any) -> int:
    """Accept ints and integral numeric strings; everything else is a bad request."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("rank must be a positive integer", details={"rank": value})
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValidationError("rank must be a positive integer", details={"rank": value}) from exc
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValidationError("rank must be a positive integer", details={"rank": value})


def find_code(document: Document, code: str) -> dict[str, Any] | None:
    return next((row for row in document["prize_codes"] if row["code"] == code), None)


def find_player_code(document: Document, player_id: str) -> dict[str, Any] | None:
    return next((row for row in document["prize_codes"] if row["player_id"] == player_id), None)


class CodeRegistry:
    def __init__(
        self,
        store: DocumentStore,
        clock: Clock = utcnow,
        generator: Callable[[], str] = generate_prize_code,
    ):
        self.store = store
        self.clock = clock
        self.generator = generator

    async def issue(self, player_id: str, rank: int) -> PrizeCode:
        async with self.store.transaction() as document:
            return self.issue_in(document, player_id, rank)

    def issue_in(self, document: Document, player_id: str, rank: int) -> PrizeCode:
        """Issue a code inside a transaction the caller already holds."""
        if not player_id or len(player_id) > MAX_PLAYER_ID_LENGTH:
            raise ValidationError("player_id is required", details={"player_id": player_id})
        if isinstance(rank, bool) or not isinstance(rank, int) or rank < 1:
            raise ValidationError("rank must be a positive integer", details={"rank": rank})

        existing = find_player_code(document, player_id)
        if existing is not None:
            raise AlreadyIssued(player_id, existing["code"])

        taken = {row["code"] for row in document["prize_codes"]}
        code = None
        for _ in range(MAX_GENERATION_ATTEMPTS):
            candidate = self.generator()
            if candidate not in taken:
                code = candidate
                break
        if code is None:
            logger.error(
                "Prize code space exhausted after %d attempts (%d codes issued)",
                MAX_GENERATION_ATTEMPTS,
                len(taken),
            )
            raise CodeSpaceExhausted("Could not generate a unique prize code")

        issued_at = truncate_ms(self.clock())
        prize = PrizeCode(
            code=code,
            rank=rank,
            player_id=player_id,
            issued_at=to_iso(issued_at),
            expires_at=to_iso(issued_at + CODE_TTL),
        )
        document["prize_codes"].append(prize.to_row())
        return prize

    async def verify(self, code: str) -> CodeStatus:
        document = await self.store.read()
        row = find_code(document, code)
        if row is None:
            return CodeStatus(status="not_found")
        prize = PrizeCode.from_row(row)
        if prize.used_at:
            return CodeStatus(
                status="used",
                rank=prize.rank,
                player_id=prize.player_id,
                used_at=prize.used_at,
                used_by=prize.used_by,
            )
        if prize.is_expired(self.clock()):
            return CodeStatus(status="expired", rank=prize.rank, player_id=prize.player_id)
        return CodeStatus(
            status="valid",
            rank=prize.rank,
            player_id=prize.player_id,
            expires_at=prize.expires_at,
        )

    async def redeem(self, code: str, used_by: str | None) -> PrizeCode:
        async with self.store.transaction() as document:
            row = find_code(document, code)
            if row is None:
                raise NotFound("Unknown prize code", details={"code": code})
            prize = PrizeCode.from_row(row)
            if prize.used_at:
                raise AlreadyUsed("Prize code was already used", details={"used_at": prize.used_at})
            now = self.clock()
            if prize.is_expired(now):
                raise Expired("Prize code has expired", details={"expires_at": prize.expires_at})
            row["used_at"] = to_iso(now)
            row["used_by"] = (used_by or "")[:MAX_PLAYER_ID_LENGTH] or None
            return PrizeCode.from_row(row)

    async def code_for(self, player_id: str) -> PrizeCode | None:
        document = await self.store.read()
        row = find_player_code(document, player_id)
        return PrizeCode.from_row(row) if row is not None else None
