"""
Audit Logger

DESIGN DECISION: Every significant action on the books is logged.
This provides:
1. Traceability of every posting and stock movement
2. A record of what was rejected, and why
3. Debugging capability when an import or save fails

The audit logger:
- Is async so flows can await storage without blocking
- Gracefully handles failures (a broken audit store never breaks posting)
- Supports correlation IDs to tie together the entries of one transaction
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from smart_accountant.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from smart_accountant.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An append-only audit store, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("smart_accountant.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_entry_posted(
        self,
        entry_id: str,
        source: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.entry_posted(
            entry_id=entry_id,
            source=source,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_entry_rejected(
        self,
        entry_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.entry_rejected(
            entry_id=entry_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_transaction_recorded(
        self,
        kind: str,
        item_id: str,
        entry_ids: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a sale or purchase that was applied to the books."""
        await self.log(AuditEventBuilder.transaction_recorded(
            kind=kind,
            item_id=item_id,
            entry_ids=entry_ids,
            correlation_id=correlation_id,
        ))

    async def log_transaction_rejected(
        self,
        kind: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_rejected(
            kind=kind,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_inventory_adjusted(
        self,
        item_id: str,
        quantity_delta: str,
        new_quantity: str,
        unit_price: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.inventory_adjusted(
            item_id=item_id,
            quantity_delta=quantity_delta,
            new_quantity=new_quantity,
            unit_price=unit_price,
            correlation_id=correlation_id,
        ))

    async def log_inventory_item_added(
        self,
        item_id: str,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.inventory_item_added(
            item_id=item_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_snapshot_event(
        self,
        event_type: AuditEventType,
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a save, load, export or import of the books."""
        await self.log(AuditEventBuilder.snapshot_event(
            event_type=event_type,
            description=description,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_import_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.import_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_settings_updated(
        self,
        changes: dict,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settings_updated(
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., recording a sale) and
    pass it through every event that action produces.
    """
    return uuid4()
