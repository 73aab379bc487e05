"""
Abstract Storage Interface

DESIGN DECISION: The engine never touches a file or a network. Flows talk
to these interfaces, so the backend can be:
1. A JSON file on disk (the default)
2. An in-memory store for tests
3. Anything else later, without changing business logic

Saving is always explicit. Nothing in the engine calls these methods as a
side effect of posting an entry.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from smart_accountant.models.audit import AuditEvent
from smart_accountant.models.ledger import LedgerSnapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for persisting the whole ledger state.

    The state is small (one business) so it is stored and loaded as a
    single snapshot rather than record by record.
    """

    @abstractmethod
    async def save_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        """
        Persist a snapshot, replacing the previous one.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def load_snapshot(self) -> Optional[LedgerSnapshot]:
        """
        Load the stored snapshot.

        Returns:
            The snapshot, or None if nothing has been saved yet

        Raises:
            StorageError: If the backend cannot be read
            ImportFormatError: If the stored data is not a valid snapshot
        """
        pass

    @abstractmethod
    async def snapshot_exists(self) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one recorded sale).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'entry', 'item')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass

