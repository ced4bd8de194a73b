"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from prizeboard.storage.redis import DEFAULT_DOCUMENT_KEY, DEFAULT_REDIS_URL

DEFAULT_ADMIN_TOKEN = "changeme"
DEFAULT_PUBLIC_SALT = "pub_salt_change_me"
STORE_BACKENDS = ("redis", "file", "memory")


@dataclass(slots=True)
class Settings:
    admin_token: str = DEFAULT_ADMIN_TOKEN
    public_salt: str = DEFAULT_PUBLIC_SALT
    store_backend: str = "redis"
    redis_url: str = DEFAULT_REDIS_URL
    document_key: str = DEFAULT_DOCUMENT_KEY
    data_file: str = "data.json"
    score_rate_limit: int = 3
    score_rate_window_sec: float = 15.0
    log_level: str = "INFO"
    port: int = 8080

    @classmethod
    def from_env(cls) -> Settings:
        backend = os.getenv("STORE_BACKEND", "redis").lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got {backend!r}")
        return cls(
            admin_token=os.getenv("ADMIN_TOKEN", DEFAULT_ADMIN_TOKEN),
            public_salt=os.getenv("PUBLIC_SALT", DEFAULT_PUBLIC_SALT),
            store_backend=backend,
            redis_url=os.getenv("REDIS_URL", DEFAULT_REDIS_URL),
            document_key=os.getenv("DOCUMENT_KEY", DEFAULT_DOCUMENT_KEY),
            data_file=os.getenv("DATA_FILE", "data.json"),
            score_rate_limit=int(os.getenv("SCORE_RATE_LIMIT", "3")),
            score_rate_window_sec=float(os.getenv("SCORE_RATE_WINDOW_SEC", "15")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "8080")),
        )
