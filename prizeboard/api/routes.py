"""HTTP route handlers for score submission, leaderboards, and prize codes."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Query

from prizeboard.api.deps import get_actor, get_service, limit_score_submissions, require_admin
from prizeboard.api.errors import APIError
from prizeboard.models.schemas import (
    CodeRequest,
    FinalizeResponse,
    HealthResponse,
    IssueCodeRequest,
    IssueCodeResponse,
    LeaderboardResponse,
    LeaderboardRow,
    ReadyResponse,
    ScoreResult,
    ScoreSubmission,
    UseCodeRequest,
    UseCodeResponse,
    VerifyCodeResponse,
    WinnerRow,
    WinnersResponse,
)
from prizeboard.services.audit import Actor
from prizeboard.services.codes import coerce_rank
from prizeboard.services.errors import PrizeboardError, ValidationError
from prizeboard.services.leaderboard import LeaderboardService
from prizeboard.services.scores import coerce_score
from prizeboard.storage.document import StoreUnavailableError

router = APIRouter(prefix="/api")
health = APIRouter()


@router.post(
    "/score",
    response_model=ScoreResult,
    dependencies=[Depends(limit_score_submissions)],
)
async def submit_score(
    payload: ScoreSubmission,
    service: LeaderboardService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> ScoreResult:
    try:
        score = coerce_score(payload.score)
        result = await service.submit_score(
            payload.player_id,
            score,
            ts=payload.ts,
            ip=actor.ip,
            ua=actor.ua,
        )
    except ValidationError:
        await service.audit.record(
            "score_reject",
            actor,
            player_id=payload.player_id or None,
            detail=payload.model_dump_json(),
            rejected=True,
        )
        raise

    await service.audit.record(
        "score_submit",
        actor,
        player_id=result.entry.player_id,
        detail=json.dumps({"score": result.entry.score}),
    )
    return ScoreResult(
        best=result.best,
        prize_code=result.prize_code,
        rank=result.rank,
        total_players=result.total_players,
        pub_code=result.pub_code,
    )


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: str | None = Query(default=None),
    cutoff: str | None = Query(default=None),
    mode: str = Query(default="best"),
    service: LeaderboardService = Depends(get_service),
) -> LeaderboardResponse:
    rows = await service.get_leaderboard(limit=limit, cutoff=cutoff, mode=mode)
    return LeaderboardResponse(
        leaderboard=[
            LeaderboardRow(
                rank=r.rank,
                player_id=r.player_id,
                score=r.score,
                ts=r.ts,
                attempts=r.attempts,
                code=r.code,
                pub_code=r.pub_code,
            )
            for r in rows
        ]
    )


@router.post(
    "/issue-code",
    response_model=IssueCodeResponse,
    dependencies=[Depends(require_admin)],
)
async def issue_code(
    payload: IssueCodeRequest,
    service: LeaderboardService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> IssueCodeResponse:
    try:
        prize = await service.codes.issue(payload.player_id, coerce_rank(payload.rank))
    except PrizeboardError as exc:
        await service.audit.record(
            "issue_code_reject",
            actor,
            player_id=payload.player_id or None,
            detail=exc.code,
            rejected=True,
        )
        raise

    await service.audit.record("issue_code", actor, player_id=prize.player_id, detail=prize.code)
    return IssueCodeResponse(code=prize.code, expires_at=prize.expires_at)


@router.post(
    "/verify-code",
    response_model=VerifyCodeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def verify_code(
    payload: CodeRequest,
    service: LeaderboardService = Depends(get_service),
) -> VerifyCodeResponse:
    if not payload.code:
        raise ValidationError("code is required")
    status = await service.codes.verify(payload.code)
    return VerifyCodeResponse(
        status=status.status,
        rank=status.rank,
        player_id=status.player_id,
        expires_at=status.expires_at,
        used_at=status.used_at,
        used_by=status.used_by,
    )


@router.post(
    "/use-code",
    response_model=UseCodeResponse,
    dependencies=[Depends(require_admin)],
)
async def use_code(
    payload: UseCodeRequest,
    service: LeaderboardService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> UseCodeResponse:
    try:
        if not payload.code:
            raise ValidationError("code is required")
        prize = await service.codes.redeem(payload.code, payload.used_by)
    except PrizeboardError as exc:
        await service.audit.record("use_code_reject", actor, detail=f"{payload.code} {exc.code}", rejected=True)
        raise

    await service.audit.record("use_code", actor, player_id=prize.player_id, detail=prize.code)
    return UseCodeResponse(used_at=prize.used_at)


@router.post(
    "/finalize",
    response_model=FinalizeResponse,
    dependencies=[Depends(require_admin)],
)
async def finalize(
    cutoff: str | None = Query(default=None),
    top: str | None = Query(default=None),
    service: LeaderboardService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> FinalizeResponse:
    try:
        result = await service.snapshots.finalize(cutoff, top)
    except PrizeboardError as exc:
        await service.audit.record("finalize_reject", actor, detail=f"{cutoff} {exc.code}", rejected=True)
        raise

    for prize in result.issued:
        await service.audit.record("issue_code_finalize", actor, player_id=prize.player_id, detail=prize.code)
    await service.audit.record(
        "finalize",
        actor,
        detail=json.dumps(
            {
                "cutoff": result.cutoff,
                "snapshot_created": result.snapshot_created,
                "issued_count": result.issued_count,
            }
        ),
    )
    return FinalizeResponse(
        cutoff=result.cutoff,
        winners=[
            WinnerRow(
                rank=w.rank,
                player_id=w.player_id,
                score=w.score,
                ts=w.ts,
                attempts=w.attempts,
                code=w.code,
            )
            for w in result.winners
        ],
        issued_count=result.issued_count,
    )


@router.get(
    "/winners",
    response_model=WinnersResponse,
    dependencies=[Depends(require_admin)],
)
async def winners(
    cutoff: str | None = Query(default=None),
    service: LeaderboardService = Depends(get_service),
) -> WinnersResponse:
    rows = await service.snapshots.winners_of(cutoff)
    return WinnersResponse(
        cutoff=cutoff,
        winners=[
            WinnerRow(rank=r.rank, player_id=r.player_id, score=r.score, code=r.code)
            for r in rows
        ],
    )


# Health checks are intended for infrastructure and do not need to appear in API docs.
@health.get("/healthz", response_model=HealthResponse, include_in_schema=False)
async def healthz() -> HealthResponse:
    return HealthResponse(status="ok")


@health.get("/readyz", response_model=ReadyResponse, include_in_schema=False)
async def readyz(service: LeaderboardService = Depends(get_service)) -> ReadyResponse:
    try:
        # Readiness verifies the backing store, not just process liveness.
        is_ready = await service.ping()
    except StoreUnavailableError as exc:
        raise APIError(
            code="store_unavailable",
            message="Store readiness check failed",
            status_code=503,
        ) from exc

    if not is_ready:
        raise APIError(
            code="store_unavailable",
            message="Store readiness check failed",
            status_code=503,
        )
    return ReadyResponse(status="ok")
