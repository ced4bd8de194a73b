"""Request-scoped dependencies: service lookup, actor context, auth, rate limits."""

from __future__ import annotations

import secrets

from fastapi import Depends, Header, Query, Request

from prizeboard.api.rate_limit import RateLimiter
from prizeboard.services.audit import Actor
from prizeboard.services.errors import RateLimited, Unauthorized
from prizeboard.services.leaderboard import LeaderboardService


def get_service(request: Request) -> LeaderboardService:
    return request.app.state.leaderboard_service


def get_actor(request: Request) -> Actor:
    return Actor(
        ip=request.client.host if request.client else None,
        ua=request.headers.get("user-agent"),
    )


def get_score_limiter(request: Request) -> RateLimiter:
    return request.app.state.score_limiter


async def require_admin(
    request: Request,
    x_admin_token: str | None = Header(default=None, alias="X-Admin-Token"),
    admin_token: str | None = Query(default=None),
    service: LeaderboardService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> None:
    expected = request.app.state.settings.admin_token
    provided = x_admin_token or admin_token or ""
    if not provided or not secrets.compare_digest(provided.encode(), expected.encode()):
        await service.audit.record("unauthorized", actor, detail=request.url.path, rejected=True)
        raise Unauthorized("Missing or invalid admin token")


async def limit_score_submissions(
    service: LeaderboardService = Depends(get_service),
    limiter: RateLimiter = Depends(get_score_limiter),
    actor: Actor = Depends(get_actor),
) -> None:
    if not await limiter.hit(actor.ip or "unknown"):
        await service.audit.record("score_rate_limited", actor, rejected=True)
        raise RateLimited("Too many score submissions, slow down")
