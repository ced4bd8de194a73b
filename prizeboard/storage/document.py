"""Document store abstraction holding the four persisted collections.

Every mutating operation runs inside :meth:`DocumentStore.transaction`, which
serializes the whole read-modify-write cycle behind one store-wide lock and
persists the document before the caller sees a result. Reads go through
:meth:`DocumentStore.read` and never take the lock.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

COLLECTIONS = ("scores", "prize_codes", "leaderboard_snapshots", "logs")

Document = dict[str, list[dict[str, Any]]]

logger = logging.getLogger("prizeboard.storage")


def empty_document() -> Document:
    return {name: [] for name in COLLECTIONS}


def normalize_document(raw: dict[str, Any] | None) -> Document:
    document = empty_document()
    if not raw:
        return document
    for name in COLLECTIONS:
        rows = raw.get(name)
        if isinstance(rows, list):
            document[name] = rows
    return document


class StoreUnavailableError(Exception):
    """Raised when the backing storage cannot be read or written."""


class DocumentStore(ABC):
    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @abstractmethod
    async def _load(self) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def _save(self, document: Document) -> None:
        ...

    async def read(self) -> Document:
        return normalize_document(await self._load())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Document]:
        async with self._lock:
            document = await self.read()
            # An exception inside the block skips the save, discarding the mutation.
            yield document
            await self._save(document)

    async def ping(self) -> bool:
        await self._load()
        return True

    async def close(self) -> None:
        return None


class MemoryDocumentStore(DocumentStore):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._document = normalize_document(copy.deepcopy(initial))

    async def _load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._document)

    async def _save(self, document: Document) -> None:
        self._document = copy.deepcopy(document)


class JsonFileDocumentStore(DocumentStore):
    """Keeps the document in one JSON file, replaced atomically on each write.

    File I/O runs in a worker thread so a slow disk or fsync does not stall
    the event loop.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)

    async def _load(self) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._read_file)

    async def _save(self, document: Document) -> None:
        await asyncio.to_thread(self._write_file, document)

    def _read_file(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreUnavailableError(f"Cannot read {self.path}") from exc
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreUnavailableError(f"{self.path} is not valid JSON") from exc

    def _write_file(self, document: Document) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.error("Failed to persist document to %s: %s", self.path, exc)
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreUnavailableError(f"Cannot write {self.path}") from exc
