"""
Main Orchestrator for Smart Accountant

This module ties together all the components and defines the
end-to-end flows for:
1. Bookkeeping (request → validate → compose → apply → audit)
2. Persistence (explicit save / load, backup export / import)
3. Advisory (books → Gemini → insights, with a local fallback)

DESIGN DECISION: The orchestrator enforces the boundaries:
- A transaction reaches the books completely or not at all
- Nothing is persisted unless `save()` is called
- A failed import leaves the loaded books untouched
- Every step is audited

The engine underneath is synchronous; flows are async only because
storage, audit and the advisory model are.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union
from uuid import UUID

import structlog

from smart_accountant.agents import (
    AdvisoryServiceError,
    FinancialAdvisor,
    default_insight,
    ready_insight,
)
from smart_accountant.audit import AuditLogger, create_correlation_id
from smart_accountant.config import Settings, get_settings
from smart_accountant.engine import (
    ImportFormatError,
    Ledger,
    LedgerError,
    TransactionValidationError,
    backup_filename,
    export_snapshot,
    import_snapshot,
    snapshot_to_json,
)
from smart_accountant.models.audit import AuditEvent, AuditEventType, AuditSeverity
from smart_accountant.models.ledger import (
    AppSettings,
    ComposedTransaction,
    FinancialInsight,
    InventoryItem,
    JournalEntry,
    LedgerSnapshot,
    TransactionRequest,
    ValidationResult,
)
from smart_accountant.services.storage import (
    JsonFileSnapshotStorage,
    JsonLinesAuditStorage,
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class BookkeepingFlow:
    """
    Orchestrates every change to the books.

    Flow for a sale or purchase:
    1. Validate → Two-stage validation (request, then against the ledger)
    2. Compose → Journal entries and inventory movement
    3. Apply → All-or-nothing on the ledger
    4. Audit → Entries, stock movement and the transaction itself

    Saving is a separate, explicit step.
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        app_settings: Optional[AppSettings] = None,
        snapshot_storage: Optional[SnapshotStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self.ledger = ledger or Ledger.from_settings(self._settings.ledger)
        self.app_settings = app_settings or AppSettings()
        self._snapshot_storage = snapshot_storage
        self._audit_logger = audit_logger or AuditLogger()

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def validate_transaction(self, request: TransactionRequest) -> ValidationResult:
        """Dry run; reports issues (including warnings) without touching the books."""
        return self.ledger.composer.validator.validate(request)

    async def record_transaction(
        self,
        request: TransactionRequest,
        correlation_id: Optional[UUID] = None,
    ) -> ComposedTransaction:
        """
        Record a sale or purchase.

        Raises:
            TransactionValidationError: the request was rejected
            LedgerError: an entry failed the ledger's own checks

        In both cases nothing was applied.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            composed = self.ledger.record(request)
        except TransactionValidationError as e:
            await self._audit_logger.log_transaction_rejected(
                kind=request.kind.value,
                issues=e.issues_as_dicts(),
                correlation_id=correlation_id,
            )
            raise
        except LedgerError as e:
            await self._audit_logger.log_transaction_rejected(
                kind=request.kind.value,
                issues=[{"field": "entries", "type": "ledger", "message": str(e)}],
                correlation_id=correlation_id,
            )
            raise

        await self._audit_applied(composed, correlation_id)
        await self._audit_logger.log_transaction_recorded(
            kind=request.kind.value,
            item_id=request.item_id,
            entry_ids=[entry.id for entry in composed.entries],
            correlation_id=correlation_id,
        )
        return composed

    async def record_manual_entry(
        self,
        description: str,
        lines: Iterable[Mapping[str, Any]],
        entry_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> JournalEntry:
        """
        Post a manual journal voucher.

        Raises:
            TransactionValidationError: no usable lines, or a malformed line
            UnbalancedEntryError: debits and credits differ (when enforced)
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            entry = self.ledger.post_manual(description, lines, entry_date)
        except LedgerError as e:
            await self._audit_logger.log_entry_rejected(
                entry_id=getattr(e, "entry_id", "") or "manual",
                reason=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_applied(ComposedTransaction(entries=[entry]), correlation_id)
        return entry

    async def _audit_applied(self, composed: ComposedTransaction, correlation_id: UUID) -> None:
        for entry in composed.entries:
            await self._audit_logger.log_entry_posted(
                entry_id=entry.id,
                source=entry.source.value,
                amount=str(entry.total_debit),
                correlation_id=correlation_id,
            )

        delta = composed.inventory_delta
        if delta is not None:
            item = self.ledger.inventory.get(delta.item_id)
            await self._audit_logger.log_inventory_adjusted(
                item_id=delta.item_id,
                quantity_delta=str(delta.quantity_delta),
                new_quantity=str(item.quantity),
                unit_price=str(item.unit_price),
                correlation_id=correlation_id,
            )

    # -------------------------------------------------------------------------
    # Inventory and settings
    # -------------------------------------------------------------------------

    async def add_inventory_item(
        self,
        name: str,
        quantity: Decimal = Decimal("0"),
        unit_price: Decimal = Decimal("0"),
        category: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> InventoryItem:
        """
        Add a stock item. Opening stock is not journalized.

        Raises:
            TransactionValidationError: empty name, negative values or duplicate id
        """
        correlation_id = correlation_id or create_correlation_id()
        item = self.ledger.inventory.add_item(
            name, quantity=quantity, unit_price=unit_price, category=category
        )
        await self._audit_logger.log_inventory_item_added(
            item_id=item.id,
            name=item.name,
            correlation_id=correlation_id,
        )
        return item

    async def update_settings(self, **changes) -> AppSettings:
        """
        Change user preferences (language, theme, currency, company name).

        Invalid values raise pydantic's ValidationError and keep the
        current settings.
        """
        updated = AppSettings.model_validate(
            {**self.app_settings.model_dump(), **changes}
        )
        diff = {
            key: value for key, value in updated.model_dump().items()
            if getattr(self.app_settings, key) != value
        }
        self.app_settings = updated
        if diff:
            await self._audit_logger.log_settings_updated(changes=diff)
        return updated

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        return export_snapshot(self.ledger, self.app_settings)

    async def save(self) -> bool:
        """
        Persist the current books.

        Returns False (and audits the failure) instead of raising, so the
        in-memory books stay usable when the disk is not.
        """
        if self._snapshot_storage is None:
            logger.info("save_skipped", reason="no snapshot storage configured")
            return False

        try:
            await self._snapshot_storage.save_snapshot(self.snapshot())
        except StorageError as e:
            await self._audit_logger.log(AuditEvent(
                event_type=AuditEventType.SAVE_FAILED,
                severity=AuditSeverity.ERROR,
                entity_type="snapshot",
                description="Saving the books failed",
                error_message=str(e),
            ))
            return False

        await self._audit_logger.log_snapshot_event(
            AuditEventType.SNAPSHOT_SAVED,
            description="Books saved",
            details={"entries": len(self.ledger.poster)},
        )
        return True

    async def load(self) -> bool:
        """
        Replace the books with the stored snapshot.

        Returns False when nothing has been saved yet (the current books are
        kept). Storage and format errors propagate after being audited.
        """
        if self._snapshot_storage is None:
            return False

        try:
            snapshot = await self._snapshot_storage.load_snapshot()
        except (StorageError, ImportFormatError) as e:
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise

        if snapshot is None:
            return False

        self._replace_books(snapshot)
        await self._audit_logger.log_snapshot_event(
            AuditEventType.SNAPSHOT_LOADED,
            description="Books loaded from storage",
            details={"entries": len(snapshot.entries)},
        )
        return True

    async def export_backup(self) -> tuple[str, str]:
        """
        Backup for download.

        Returns:
            (filename, json_text)
        """
        snapshot = self.snapshot()
        filename = backup_filename(snapshot.timestamp.date())
        await self._audit_logger.log_snapshot_event(
            AuditEventType.SNAPSHOT_EXPORTED,
            description=f"Backup exported as {filename}",
            details={"entries": len(snapshot.entries)},
        )
        return filename, snapshot_to_json(snapshot)

    async def import_backup(
        self,
        raw: Union[str, bytes, Mapping[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSnapshot:
        """
        Replace the books with an uploaded backup.

        Raises:
            ImportFormatError: the backup is unusable; the current books are kept
        """
        try:
            snapshot = import_snapshot(raw)
        except ImportFormatError as e:
            await self._audit_logger.log_import_failed(
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        self._replace_books(snapshot)
        await self._audit_logger.log_snapshot_event(
            AuditEventType.SNAPSHOT_IMPORTED,
            description="Backup imported",
            details={
                "accounts": len(snapshot.accounts),
                "entries": len(snapshot.entries),
                "inventory": len(snapshot.inventory),
            },
            correlation_id=correlation_id,
        )
        return snapshot

    def _replace_books(self, snapshot: LedgerSnapshot) -> None:
        self.ledger = Ledger.from_snapshot(snapshot, self._settings.ledger)
        if snapshot.settings is not None:
            self.app_settings = snapshot.settings.model_copy()


class AdvisoryFlow:
    """
    Orchestrates the advisory insights shown on the dashboard.

    CRITICAL BOUNDARIES:
    - Reads the books, never writes them
    - Only asks the model once the books have some history
    - Always returns at least one insight
    - A model failure is audited and answered with the default insight
    """

    def __init__(
        self,
        advisor: Optional[FinancialAdvisor] = None,
        audit_logger: Optional[AuditLogger] = None,
        min_entries: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        self._advisor = advisor
        self._audit_logger = audit_logger or AuditLogger()
        if min_entries is None:
            min_entries = (settings or get_settings()).ledger.advisory_min_entries
        self._min_entries = min_entries

    async def refresh_insights(
        self,
        ledger: Ledger,
        language: str = "ar",
        correlation_id: Optional[UUID] = None,
    ) -> list[FinancialInsight]:
        if len(ledger.poster) <= self._min_entries:
            return [ready_insight(language)]

        if self._advisor is None:
            return [default_insight(language)]

        try:
            insights = await self._advisor.request_insights(
                ledger.chart.accounts, ledger.poster.history(), language
            )
        except AdvisoryServiceError as e:
            logger.warning("advisory_fallback", error=str(e))
            await self._audit_logger.log_external_service_error(
                service="gemini",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return [default_insight(language)]

        await self._audit_logger.log(AuditEvent(
            event_type=AuditEventType.INSIGHTS_GENERATED,
            entity_type="insights",
            correlation_id=correlation_id,
            description=f"{len(insights)} insights generated",
            details={"types": [insight.type.value for insight in insights]},
        ))
        return insights


def create_app_components(
    use_storage: bool = True,
    use_advisor: bool = True,
    settings: Optional[Settings] = None,
) -> tuple[BookkeepingFlow, AdvisoryFlow]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to the JSON file backend.
                    Set to False for a purely in-memory session.
        use_advisor: Whether to build the Gemini advisor. Without an API key
                    the advisory flow falls back to the default insight.

    Returns:
        (bookkeeping_flow, advisory_flow)
    """
    settings = settings or get_settings()
    snapshot_storage = None
    audit_logger = AuditLogger()

    if use_storage:
        snapshot_storage = JsonFileSnapshotStorage(settings.storage.snapshot_path)
        audit_logger = AuditLogger(JsonLinesAuditStorage(settings.storage.audit_path))

    advisor = None
    if use_advisor:
        try:
            advisor = FinancialAdvisor(settings=settings.gemini)
        except Exception as e:
            logger.warning("advisor_not_configured", error=str(e))

    bookkeeping_flow = BookkeepingFlow(
        snapshot_storage=snapshot_storage,
        audit_logger=audit_logger,
        settings=settings,
    )
    advisory_flow = AdvisoryFlow(
        advisor=advisor,
        audit_logger=audit_logger,
        settings=settings,
    )
    return bookkeeping_flow, advisory_flow
