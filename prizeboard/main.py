"""FastAPI application wiring for routes, error handlers, and lifespan."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from prizeboard.api.errors import APIError
from prizeboard.api.rate_limit import InMemoryRateLimiter, RateLimiter, RedisRateLimiter
from prizeboard.api.routes import health, router
from prizeboard.config import DEFAULT_ADMIN_TOKEN, Settings
from prizeboard.logger import configure_logging
from prizeboard.models.schemas import ErrorResponse
from prizeboard.services.errors import PrizeboardError
from prizeboard.services.leaderboard import LeaderboardService
from prizeboard.storage.document import (
    DocumentStore,
    JsonFileDocumentStore,
    MemoryDocumentStore,
    StoreUnavailableError,
)
from prizeboard.storage.redis import RedisDocumentStore, create_redis_client

logger = logging.getLogger("prizeboard.main")


def build_backends(settings: Settings) -> tuple[DocumentStore, RateLimiter]:
    if settings.store_backend == "redis":
        redis_client = create_redis_client(settings.redis_url)
        store = RedisDocumentStore(redis_client, settings.document_key)
        limiter = RedisRateLimiter(redis_client, settings.score_rate_limit, settings.score_rate_window_sec)
        return store, limiter

    if settings.store_backend == "file":
        store = JsonFileDocumentStore(settings.data_file)
    else:
        store = MemoryDocumentStore()
    return store, InMemoryRateLimiter(settings.score_rate_limit, settings.score_rate_window_sec)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    store, limiter = build_backends(settings)
    app.state.store = store
    app.state.score_limiter = limiter
    app.state.leaderboard_service = LeaderboardService(store, settings.public_salt)
    if settings.admin_token == DEFAULT_ADMIN_TOKEN:
        logger.warning("Using default ADMIN_TOKEN. Set env ADMIN_TOKEN for production.")
    logger.info("Prizeboard started with %s store", settings.store_backend)
    try:
        yield
    finally:
        await store.close()


def _error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    payload = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Prizeboard API", version="1.0.0", lifespan=app_lifespan)
    app.state.settings = settings

    @app.exception_handler(APIError)
    async def api_error_handler(_: Request, exc: APIError) -> JSONResponse:
        return _error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(PrizeboardError)
    async def domain_error_handler(_: Request, exc: PrizeboardError) -> JSONResponse:
        error = APIError.from_domain(exc)
        if error.status_code >= 500:
            logger.error("Internal failure %s: %s", exc.code, exc.message)
        return _error_response(error.status_code, error.code, error.message, error.details)

    @app.exception_handler(StoreUnavailableError)
    async def store_error_handler(_: Request, exc: StoreUnavailableError) -> JSONResponse:
        logger.error("Store failure: %s", exc)
        return _error_response(500, "store_unavailable", "Storage is unavailable")

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(
            400,
            "bad_request",
            "Request validation failed",
            {"errors": jsonable_errors(exc)},
        )

    app.include_router(router)
    app.include_router(health)
    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # Pydantic error contexts may hold exception objects that JSON cannot encode.
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


app = create_app()
