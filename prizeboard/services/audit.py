"""Audit trail for mutating API actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from prizeboard.services.clock import Clock, to_iso, utcnow
from prizeboard.storage.document import DocumentStore

logger = logging.getLogger("prizeboard.audit")


@dataclass(slots=True, frozen=True)
class Actor:
    ip: str | None = None
    ua: str | None = None


class AuditLog:
    def __init__(self, store: DocumentStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    async def record(
        self,
        action: str,
        actor: Actor | None = None,
        player_id: str | None = None,
        detail: str | None = None,
        rejected: bool = False,
    ) -> dict:
        actor = actor or Actor()
        level = logging.WARNING if rejected else logging.INFO
        logger.log(
            level,
            "action=%s player_id=%s ip=%s ua=%r detail=%s",
            action,
            player_id,
            actor.ip,
            actor.ua,
            detail,
        )
        async with self.store.transaction() as document:
            logs = document["logs"]
            row = {
                "id": len(logs) + 1,
                "ts": to_iso(self.clock()),
                "action": action,
                "player_id": player_id,
                "detail": detail,
                "ip": actor.ip,
                "ua": actor.ua,
            }
            logs.append(row)
        return row

    async def entries(self, action: str | None = None) -> list[dict]:
        document = await self.store.read()
        return [row for row in document["logs"] if action is None or row["action"] == action]
