"""
Core Ledger Models for Smart Accountant

These models define the strict schemas for everything the bookkeeping
engine stores or exchanges. They are designed to:
1. Enforce non-negative amounts and quantities at runtime
2. Be serializable to the snapshot JSON format (camelCase keys)
3. Keep journal entries immutable once created

DESIGN DECISION: Money and quantities are Decimal, never float.
Snapshot-facing models accept both snake_case and camelCase keys so
backups written by earlier versions of the application import cleanly.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


MAX_DESCRIPTION_LENGTH = 500


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Account classification.

    Determines the normal side: ASSET and EXPENSE are debit-normal,
    LIABILITY, EQUITY and INCOME are credit-normal.
    """
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"


# Labels written by earlier versions of the application.
LEGACY_ACCOUNT_TYPES = {
    "أصول": AccountType.ASSET,
    "التزامات": AccountType.LIABILITY,
    "حقوق ملكية": AccountType.EQUITY,
    "إيرادات": AccountType.INCOME,
    "مصروفات": AccountType.EXPENSE,
}


class NormalSide(str, Enum):
    """Side on which an account carries a positive balance."""
    DEBIT = "debit"
    CREDIT = "credit"


class TransactionKind(str, Enum):
    """Inventory transactions the composer knows how to build."""
    SALE = "sale"
    PURCHASE = "purchase"


class EntrySource(str, Enum):
    """
    How a journal entry was created.

    Stored on the entry so history can be filtered by origin
    without ever reading intent from the description text.
    """
    SALE = "sale"
    PURCHASE = "purchase"
    COST_OF_SALE = "cost_of_sale"
    MANUAL = "manual"


class InsightType(str, Enum):
    """Tone of an advisory insight."""
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


class LedgerModel(BaseModel):
    """Base for models that travel inside a snapshot."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# CHART OF ACCOUNTS
# =============================================================================

class Account(LedgerModel):
    """
    A ledger account.

    `balance` is a running signed total in the account's normal-side units.
    It is only ever changed by the ledger poster.
    """

    id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    type: AccountType
    balance: Decimal = Field(default=Decimal("0"))

    @field_validator("type", mode="before")
    @classmethod
    def accept_legacy_type(cls, v):
        """Older backups store the Arabic label or the upper-case enum name."""
        if isinstance(v, str):
            label = v.strip()
            if label in LEGACY_ACCOUNT_TYPES:
                return LEGACY_ACCOUNT_TYPES[label]
            return label.lower()
        return v


class AccountRoles(BaseModel):
    """
    Explicit mapping from accounting roles to account ids.

    Resolved once at setup and handed to the transaction composer
    and the report engine.
    """

    revenue_account: str
    cogs_account: str
    inventory_asset_account: str
    default_clearing_account: str


# =============================================================================
# JOURNAL
# =============================================================================

class JournalItem(LedgerModel):
    """One debit or credit line of a journal entry."""

    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., min_length=1)
    debit: Decimal = Field(default=Decimal("0"), ge=0)
    credit: Decimal = Field(default=Decimal("0"), ge=0)


class JournalEntry(LedgerModel):
    """
    A journal entry.

    CRITICAL: Entries are immutable. There is no edit or delete operation;
    corrections are made by posting further entries.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    date: dt.date
    description: str = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)
    items: tuple[JournalItem, ...] = Field(default_factory=tuple)
    source: EntrySource = Field(default=EntrySource.MANUAL)

    @property
    def total_debit(self) -> Decimal:
        return sum((item.debit for item in self.items), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((item.credit for item in self.items), Decimal("0"))

    def is_balanced(self, tolerance: Decimal = Decimal("0.01")) -> bool:
        """Do debits equal credits within the tolerance?"""
        return abs(self.total_debit - self.total_credit) < tolerance


# =============================================================================
# INVENTORY
# =============================================================================

class InventoryItem(LedgerModel):
    """
    A stock item valued at moving weighted-average cost.

    `unit_price` is the current average cost, not a selling price.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    category: str = Field(default="", max_length=100)

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_price


class InventoryDelta(BaseModel):
    """
    A stock movement produced alongside journal entries.

    Positive quantity with a unit price is an incoming movement that
    re-averages cost; negative quantity is outgoing and carries no price.
    """

    item_id: str
    quantity_delta: Decimal
    unit_price: Optional[Decimal] = None


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionRequest(BaseModel):
    """
    A sale or purchase as submitted by the user.

    Values are deliberately unconstrained here; the transaction validator
    reports every problem at once instead of failing on the first field.
    """

    kind: TransactionKind
    item_id: str
    quantity: Decimal
    unit_price: Decimal
    clearing_account_id: Optional[str] = None
    description: Optional[str] = None
    entry_date: Optional[dt.date] = None

    @property
    def total_amount(self) -> Decimal:
        return self.quantity * self.unit_price


class ComposedTransaction(BaseModel):
    """
    The complete, validated effect of one transaction.

    Applied by the ledger as a single all-or-nothing step.
    """

    entries: list[JournalEntry] = Field(default_factory=list)
    inventory_delta: Optional[InventoryDelta] = None


# =============================================================================
# SETTINGS, INSIGHTS AND SNAPSHOT
# =============================================================================

class AppSettings(LedgerModel):
    """User-facing preferences stored alongside the books."""

    language: str = Field(default="ar", pattern="^(ar|en)$")
    theme: str = Field(default="light", pattern="^(light|dark)$")
    currency: str = Field(default="SAR", pattern="^(SAR|EGP)$")
    company_name: str = Field(default="Smart Solutions Est.", max_length=200)


class FinancialInsight(BaseModel):
    """A short piece of advisory text shown on the dashboard."""

    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    type: InsightType = InsightType.INFO


class LedgerSnapshot(LedgerModel):
    """
    Complete, JSON-serializable state of the books.

    This is the unit of export, import and persistence.
    """

    accounts: list[Account]
    entries: list[JournalEntry]
    inventory: list[InventoryItem] = Field(default_factory=list)
    settings: Optional[AppSettings] = None
    timestamp: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )

    @field_validator("inventory", mode="before")
    @classmethod
    def default_missing_inventory(cls, v):
        """Older backups may carry `inventory: null`."""
        return [] if v is None else v


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'insufficient_stock')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage transaction validation.

    Stage 1: Request checks (amounts, required selections)
    Stage 2: Ledger checks (item and account existence, stock on hand)
    """

    request_valid: bool
    ledger_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    @property
    def is_valid(self) -> bool:
        return self.request_valid and self.ledger_valid and not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
