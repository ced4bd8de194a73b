"""Redis client creation helpers and the Redis-backed document store."""

from __future__ import annotations

import json
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from prizeboard.storage.document import Document, DocumentStore, StoreUnavailableError

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_DOCUMENT_KEY = "prizeboard:document"


def create_redis_client(redis_url: str) -> Redis:
    return Redis.from_url(redis_url or DEFAULT_REDIS_URL, decode_responses=True)


class RedisDocumentStore(DocumentStore):
    """Stores the whole document as one JSON value under ``key``."""

    def __init__(self, redis_client: Redis, key: str = DEFAULT_DOCUMENT_KEY) -> None:
        super().__init__()
        self.redis = redis_client
        self.key = key

    async def _load(self) -> dict[str, Any] | None:
        try:
            raw = await self.redis.get(self.key)
        except RedisError as exc:
            raise StoreUnavailableError("Redis read failed") from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreUnavailableError(f"Redis key {self.key} is not valid JSON") from exc

    async def _save(self, document: Document) -> None:
        try:
            await self.redis.set(self.key, json.dumps(document, ensure_ascii=False))
        except RedisError as exc:
            raise StoreUnavailableError("Redis write failed") from exc

    async def ping(self) -> bool:
        try:
            response = await self.redis.ping()
        except RedisError as exc:
            raise StoreUnavailableError("Redis ping failed") from exc
        return bool(response)

    async def close(self) -> None:
        await self.redis.aclose()
