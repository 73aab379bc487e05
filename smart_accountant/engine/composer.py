"""
Transaction Composer

Turns a sale or purchase request into the complete set of journal
entries plus the inventory movement, without touching any state.

SALE (two entries):
    Dr clearing account        qty x sale price
        Cr revenue                 qty x sale price
    Dr cost of goods sold      qty x stored average cost
        Cr inventory asset         qty x stored average cost
    stock: -qty, unit cost unchanged

PURCHASE (one entry):
    Dr inventory asset         qty x purchase price
        Cr clearing account        qty x purchase price
    stock: +qty at purchase price, unit cost re-averaged

The cost of a sale is read from the item's stored average cost before
the stock is decremented. Role accounts come only from AccountRoles.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional
from uuid import uuid4

import structlog

from smart_accountant.engine.chart import ChartOfAccounts
from smart_accountant.engine.exceptions import TransactionValidationError
from smart_accountant.engine.inventory import InventoryValuation
from smart_accountant.models.ledger import (
    MAX_DESCRIPTION_LENGTH,
    AccountRoles,
    ComposedTransaction,
    EntrySource,
    InventoryDelta,
    JournalEntry,
    JournalItem,
    TransactionKind,
    TransactionRequest,
    ValidationIssue,
)
from smart_accountant.validation import TransactionValidator


logger = structlog.get_logger(__name__)


def new_entry_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:8].upper()}"


def parse_amount(value: Any) -> Optional[Decimal]:
    """Form amount as a Decimal; blank is zero, anything non-numeric is None."""
    text = "" if value is None else str(value).strip()
    if not text:
        return Decimal("0")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


class TransactionComposer:
    """
    Builds balanced journal entries for inventory transactions and
    manual journal vouchers.

    The composer only reads the chart and the inventory.
    """

    def __init__(
        self,
        chart: ChartOfAccounts,
        inventory: InventoryValuation,
        roles: AccountRoles,
        validator: Optional[TransactionValidator] = None,
    ):
        self._chart = chart
        self._inventory = inventory
        self._roles = roles
        self._validator = validator or TransactionValidator(chart, inventory, roles)

    @property
    def validator(self) -> TransactionValidator:
        return self._validator

    def compose(self, request: TransactionRequest) -> ComposedTransaction:
        """
        Build the entries and stock movement for a sale or purchase.

        Raises:
            TransactionValidationError: the request fails validation;
                nothing is produced and nothing is mutated
        """
        result = self._validator.validate(request)
        if not result.is_valid:
            errors = [i for i in result.issues if i.severity == "error"]
            logger.info(
                "transaction_rejected",
                kind=request.kind.value,
                item_id=request.item_id,
                issues=[i.issue_type for i in errors],
            )
            raise TransactionValidationError(errors)

        if request.kind == TransactionKind.SALE:
            return self._compose_sale(request)
        return self._compose_purchase(request)

    def _compose_sale(self, request: TransactionRequest) -> ComposedTransaction:
        item = self._inventory.require(request.item_id)
        clearing_id = self._validator.resolve_clearing_account(request)
        entry_date = request.entry_date or date.today()
        total = request.total_amount

        # Cost basis is the stored average, captured before the decrement.
        cost_amount = request.quantity * item.unit_price

        revenue_entry = JournalEntry(
            id=new_entry_id("TRX"),
            date=entry_date,
            description=request.description or f"Sales - {item.name}",
            items=(
                JournalItem(account_id=clearing_id, debit=total),
                JournalItem(account_id=self._roles.revenue_account, credit=total),
            ),
            source=EntrySource.SALE,
        )
        cost_entry = JournalEntry(
            id=new_entry_id("INV"),
            date=entry_date,
            description=f"Cost of sales - {item.name}",
            items=(
                JournalItem(account_id=self._roles.cogs_account, debit=cost_amount),
                JournalItem(account_id=self._roles.inventory_asset_account, credit=cost_amount),
            ),
            source=EntrySource.COST_OF_SALE,
        )

        return ComposedTransaction(
            entries=[revenue_entry, cost_entry],
            inventory_delta=InventoryDelta(
                item_id=item.id,
                quantity_delta=-request.quantity,
            ),
        )

    def _compose_purchase(self, request: TransactionRequest) -> ComposedTransaction:
        item = self._inventory.require(request.item_id)
        clearing_id = self._validator.resolve_clearing_account(request)
        total = request.total_amount

        entry = JournalEntry(
            id=new_entry_id("TRX"),
            date=request.entry_date or date.today(),
            description=request.description or f"Purchases - {item.name}",
            items=(
                JournalItem(account_id=self._roles.inventory_asset_account, debit=total),
                JournalItem(account_id=clearing_id, credit=total),
            ),
            source=EntrySource.PURCHASE,
        )

        return ComposedTransaction(
            entries=[entry],
            inventory_delta=InventoryDelta(
                item_id=item.id,
                quantity_delta=request.quantity,
                unit_price=request.unit_price,
            ),
        )

    def compose_manual(
        self,
        description: str,
        lines: Iterable[Mapping[str, Any]],
        entry_date: Optional[date] = None,
    ) -> JournalEntry:
        """
        Build a manual journal voucher from form lines.

        Each line is a mapping with `account_id`, `debit` and `credit`.
        Lines without an account or with no amount are dropped, as blank
        rows of the entry form are.

        Raises:
            TransactionValidationError: no usable line remains, an amount
                is not a number or is negative, a line carries both sides,
                an account is unknown, or the description is too long
        """
        issues = []
        items = []

        if description and len(description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="invalid_value",
                message=f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
            ))

        for index, line in enumerate(lines, start=1):
            account_id = (line.get("account_id") or "").strip()
            if not account_id:
                continue

            debit = parse_amount(line.get("debit"))
            credit = parse_amount(line.get("credit"))
            if debit is None or credit is None:
                issues.append(ValidationIssue(
                    field=f"lines[{index}]",
                    issue_type="invalid_value",
                    message=f"Line {index}: amounts must be numbers",
                ))
                continue
            if debit == 0 and credit == 0:
                continue

            if debit < 0 or credit < 0:
                issues.append(ValidationIssue(
                    field=f"lines[{index}]",
                    issue_type="invalid_value",
                    message=f"Line {index}: amounts cannot be negative",
                ))
                continue
            if debit > 0 and credit > 0:
                issues.append(ValidationIssue(
                    field=f"lines[{index}]",
                    issue_type="invalid_value",
                    message=f"Line {index}: a line is either a debit or a credit, not both",
                ))
                continue
            if account_id not in self._chart:
                issues.append(ValidationIssue(
                    field=f"lines[{index}]",
                    issue_type="not_found",
                    message=f"Line {index}: account not found: {account_id}",
                ))
                continue

            items.append(JournalItem(account_id=account_id, debit=debit, credit=credit))

        if not items and not issues:
            issues.append(ValidationIssue(
                field="lines",
                issue_type="missing",
                message="A journal entry needs at least one line with an account and an amount",
            ))

        if issues:
            raise TransactionValidationError(issues)

        return JournalEntry(
            id=new_entry_id("JV"),
            date=entry_date or date.today(),
            description=description or "Manual journal entry",
            items=tuple(items),
            source=EntrySource.MANUAL,
        )
