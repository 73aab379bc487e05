"""
Audit Models for Smart Accountant

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every posting and stock movement
2. Debugging information when things go wrong
3. A record of rejected transactions and failed imports

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    ENTRY_POSTED = "entry_posted"
    ENTRY_REJECTED = "entry_rejected"
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Inventory
    INVENTORY_ITEM_ADDED = "inventory_item_added"
    INVENTORY_ADJUSTED = "inventory_adjusted"

    # Snapshot / persistence
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_EXPORTED = "snapshot_exported"
    SNAPSHOT_IMPORTED = "snapshot_imported"
    IMPORT_FAILED = "import_failed"
    SAVE_FAILED = "save_failed"

    # Settings
    SETTINGS_UPDATED = "settings_updated"

    # Advisory
    INSIGHTS_GENERATED = "insights_generated"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'item', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., both entries of one sale)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_posted(entry_id, "manual", "500.00", correlation_id)
        event = AuditEventBuilder.transaction_rejected("sale", issues, correlation_id)
    """

    @staticmethod
    def entry_posted(
        entry_id: str,
        source: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_POSTED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Journal entry {entry_id} posted ({source}) for {amount}",
            details={
                "source": source,
                "amount": amount,
            },
        )

    @staticmethod
    def entry_rejected(
        entry_id: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Journal entry {entry_id} rejected",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def transaction_recorded(
        kind: str,
        item_id: str,
        entry_ids: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="item",
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} recorded with {len(entry_ids)} entries",
            details={
                "kind": kind,
                "entry_ids": entry_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        kind: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} rejected with {len(issues)} issues",
            details={
                "kind": kind,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def inventory_adjusted(
        item_id: str,
        quantity_delta: str,
        new_quantity: str,
        unit_price: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVENTORY_ADJUSTED,
            entity_type="item",
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Stock of {item_id} moved by {quantity_delta}",
            details={
                "quantity_delta": quantity_delta,
                "new_quantity": new_quantity,
                "unit_price": unit_price,
            },
        )

    @staticmethod
    def inventory_item_added(
        item_id: str,
        name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVENTORY_ITEM_ADDED,
            entity_type="item",
            entity_id=item_id,
            correlation_id=correlation_id,
            description=f"Inventory item added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def snapshot_event(
        event_type: AuditEventType,
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=description,
            details=details or {},
        )

    @staticmethod
    def import_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description="Snapshot import rejected, previous state kept",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def settings_updated(
        changes: dict,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            correlation_id=correlation_id,
            description=f"Settings updated: {', '.join(sorted(changes))}",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
