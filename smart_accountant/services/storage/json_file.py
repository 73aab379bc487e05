"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON document holds the books, in the same
format as a downloadable backup. Audit events go to a separate
newline-delimited JSON file that is only ever appended to.

TRADEOFFS:
- Whole-file rewrite on every save (fine for one small business)
- No concurrent writers (the engine is single-writer anyway)

Writes go to a temporary file first and are renamed into place, so a
crash mid-write leaves the previous snapshot intact.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from smart_accountant.config import get_settings
from smart_accountant.engine.snapshot import import_snapshot, snapshot_to_json
from smart_accountant.models.audit import AuditEvent
from smart_accountant.models.ledger import LedgerSnapshot
from smart_accountant.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """
    Snapshot storage backed by one JSON file.

    Usage:
        storage = JsonFileSnapshotStorage()            # path from settings
        storage = JsonFileSnapshotStorage("books.json")
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else get_settings().storage.snapshot_path

    @property
    def path(self) -> Path:
        return self._path

    async def save_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        try:
            await asyncio.to_thread(_write_atomic, self._path, snapshot_to_json(snapshot))
        except OSError as e:
            raise StorageError(f"Failed to save snapshot to {self._path}: {e}") from e
        logger.info("snapshot_written", path=str(self._path))
        return True

    async def load_snapshot(self) -> Optional[LedgerSnapshot]:
        if not await self.snapshot_exists():
            return None
        try:
            raw = await asyncio.to_thread(self._path.read_bytes)
        except OSError as e:
            raise StorageError(f"Failed to read snapshot from {self._path}: {e}") from e
        return import_snapshot(raw)

    async def snapshot_exists(self) -> bool:
        return await asyncio.to_thread(self._path.is_file)


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON event per line.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else get_settings().storage.audit_path

    def _append_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.is_file():
            return []
        events = []
        with self._path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.model_validate_json(line))
                except ValidationError:
                    logger.warning("audit_line_unreadable", path=str(self._path), line=lineno)
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            await asyncio.to_thread(self._append_line, event.model_dump_json())
        except OSError as e:
            raise StorageError(f"Failed to append audit event: {e}") from e
        return True

    async def _load(self) -> list[AuditEvent]:
        try:
            return await asyncio.to_thread(self._read_events)
        except OSError as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in await self._load() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in await self._load()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = await self._load()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
