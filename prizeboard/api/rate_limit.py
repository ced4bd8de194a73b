"""Sliding-window rate limiters keyed by client address."""

from __future__ import annotations

import math
import threading
import time
import uuid
from collections import deque
from typing import Callable, Protocol

from redis.asyncio import Redis


class RateLimiter(Protocol):
    async def hit(self, key: str) -> bool:
        """Record one attempt for ``key``; return False when it exceeds the window."""


class InMemoryRateLimiter:
    def __init__(self, limit: int, window_sec: float, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_sec = window_sec
        self.clock = clock
        self._lock = threading.Lock()
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    @property
    def tracked_clients(self) -> int:
        return len(self._hits)

    def _sweep(self, now: float) -> None:
        # Drop clients whose newest hit has left the window.
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= now - self.window_sec]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    async def hit(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            if now - self._last_sweep >= self.window_sec:
                self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - self.window_sec:
                hits.popleft()
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True


class RedisRateLimiter:
    """Shares the window across workers using one sorted set per client."""

    def __init__(
        self,
        redis_client: Redis,
        limit: int,
        window_sec: float,
        prefix: str = "prizeboard:rate:",
        clock: Callable[[], float] = time.time,
    ):
        self.redis = redis_client
        self.limit = limit
        self.window_sec = window_sec
        self.prefix = prefix
        self.clock = clock

    async def hit(self, key: str) -> bool:
        now = self.clock()
        redis_key = f"{self.prefix}{key}"
        member = f"{now:.6f}:{uuid.uuid4().hex}"

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(redis_key, "-inf", now - self.window_sec)
            pipe.zadd(redis_key, {member: now})
            pipe.zcard(redis_key)
            pipe.expire(redis_key, math.ceil(self.window_sec))
            _, _, count, _ = await pipe.execute()

        if count > self.limit:
            # Rejected attempts do not occupy the window.
            await self.redis.zrem(redis_key, member)
            return False
        return True
