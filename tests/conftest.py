from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from prizeboard.config import Settings
from prizeboard.main import create_app
from prizeboard.services.leaderboard import LeaderboardService
from prizeboard.storage.document import MemoryDocumentStore

ADMIN_TOKEN = "test-admin-token"
ADMIN_HEADERS = {"X-Admin-Token": ADMIN_TOKEN}


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def iso(seconds: int) -> str:
    """A fixed test instant ``seconds`` after 2025-01-01T00:00:00.000Z."""
    moment = datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture()
def service(store, clock) -> LeaderboardService:
    return LeaderboardService(store, public_salt="test-salt", clock=clock)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        admin_token=ADMIN_TOKEN,
        public_salt="test-salt",
        store_backend="memory",
        score_rate_limit=1000,
    )


@pytest.fixture()
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def read_document(api: TestClient) -> dict:
    return asyncio.run(api.app.state.store.read())
