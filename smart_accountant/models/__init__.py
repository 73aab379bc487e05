"""
Data Models Package

This package contains all Pydantic models used in Smart Accountant.
All data flowing through the engine must conform to these schemas.
"""

from smart_accountant.models.ledger import (
    Account,
    AccountRoles,
    AccountType,
    AppSettings,
    ComposedTransaction,
    EntrySource,
    FinancialInsight,
    InsightType,
    InventoryDelta,
    InventoryItem,
    JournalEntry,
    JournalItem,
    LedgerSnapshot,
    NormalSide,
    TransactionKind,
    TransactionRequest,
    ValidationIssue,
    ValidationResult,
)
from smart_accountant.models.reports import (
    BalanceSheet,
    BalanceSheetLine,
    DashboardSummary,
    IncomeStatement,
    InventorySummary,
    InventoryValuationLine,
    InventoryValuationReport,
    PeriodChange,
    StatementLine,
)
from smart_accountant.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountRoles",
    "AccountType",
    "AppSettings",
    "ComposedTransaction",
    "EntrySource",
    "FinancialInsight",
    "InsightType",
    "InventoryDelta",
    "InventoryItem",
    "JournalEntry",
    "JournalItem",
    "LedgerSnapshot",
    "NormalSide",
    "TransactionKind",
    "TransactionRequest",
    "ValidationIssue",
    "ValidationResult",
    # Report models
    "BalanceSheet",
    "BalanceSheetLine",
    "DashboardSummary",
    "IncomeStatement",
    "InventorySummary",
    "InventoryValuationLine",
    "InventoryValuationReport",
    "PeriodChange",
    "StatementLine",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
