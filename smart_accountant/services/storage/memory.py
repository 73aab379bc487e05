"""
In-memory storage, used by tests and by callers that never persist.

The snapshot is kept as serialized JSON, so loading goes through the same
import path as a file and returns independent copies.
"""

from typing import Optional
from uuid import UUID

from smart_accountant.engine.snapshot import import_snapshot, snapshot_to_json
from smart_accountant.models.audit import AuditEvent
from smart_accountant.models.ledger import LedgerSnapshot
from smart_accountant.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):

    def __init__(self):
        self._data: Optional[str] = None
        self.save_count = 0

    async def save_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        self._data = snapshot_to_json(snapshot)
        self.save_count += 1
        return True

    async def load_snapshot(self) -> Optional[LedgerSnapshot]:
        if self._data is None:
            return None
        return import_snapshot(self._data)

    async def snapshot_exists(self) -> bool:
        return self._data is not None


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return sorted(
            (e for e in self.events if e.correlation_id == correlation_id),
            key=lambda e: e.timestamp,
        )

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return sorted(
            (
                e for e in self.events
                if e.entity_type == entity_type and e.entity_id == entity_id
            ),
            key=lambda e: e.timestamp,
        )

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
