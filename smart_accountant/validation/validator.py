"""
Two-Stage Transaction Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - REQUEST VALIDATION:
- Quantity must be positive
- Unit price must not be negative
- Total must be positive
- An item and a clearing account must be selected
- The description fits in a journal entry

STAGE 2 - LEDGER VALIDATION:
- The item and every account involved exist
- A sale cannot exceed the stock on hand
- Suspicious but legal values (selling below cost, future dates) are warnings

WHY: There is no rollback. Everything that could make a transaction fail
must be known before the first balance or stock movement happens.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the caller can tell the user.
"""

from datetime import date, timedelta
from typing import TYPE_CHECKING

from smart_accountant.models.ledger import (
    AccountRoles,
    MAX_DESCRIPTION_LENGTH,
    TransactionKind,
    TransactionRequest,
    ValidationIssue,
    ValidationResult,
)

if TYPE_CHECKING:
    from smart_accountant.engine.chart import ChartOfAccounts
    from smart_accountant.engine.inventory import InventoryValuation


class TransactionValidator:
    """
    Validates sale and purchase requests against the current ledger.

    Stage 1 needs nothing but the request; stage 2 reads the chart of
    accounts and the inventory but never changes them.
    """

    def __init__(
        self,
        chart: "ChartOfAccounts",
        inventory: "InventoryValuation",
        roles: AccountRoles,
        future_date_tolerance_days: int = 1,
    ):
        self._chart = chart
        self._inventory = inventory
        self._roles = roles
        self._future_days = future_date_tolerance_days

    def resolve_clearing_account(self, request: TransactionRequest) -> str:
        return request.clearing_account_id or self._roles.default_clearing_account

    def _validate_request(
        self,
        request: TransactionRequest,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Request validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not request.item_id:
            issues.append(ValidationIssue(
                field="item_id",
                issue_type="missing",
                message="An inventory item must be selected",
            ))

        if request.quantity <= 0:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="invalid_value",
                message="Quantity must be greater than zero",
                suggested_fix="Enter at least one unit",
            ))

        if request.unit_price < 0:
            issues.append(ValidationIssue(
                field="unit_price",
                issue_type="invalid_value",
                message="Unit price cannot be negative",
            ))
        elif request.quantity > 0 and request.total_amount <= 0:
            issues.append(ValidationIssue(
                field="total_amount",
                issue_type="invalid_value",
                message="Transaction total must be greater than zero",
                suggested_fix="Enter a unit price",
            ))

        if not self.resolve_clearing_account(request):
            issues.append(ValidationIssue(
                field="clearing_account_id",
                issue_type="missing",
                message="A payment account must be selected",
            ))

        if request.description and len(request.description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="invalid_value",
                message=f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
                suggested_fix="Shorten the description",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_ledger(
        self,
        request: TransactionRequest,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Ledger validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        item = self._inventory.get(request.item_id)
        if item is None:
            issues.append(ValidationIssue(
                field="item_id",
                issue_type="not_found",
                message=f"Inventory item not found: {request.item_id}",
            ))

        clearing_id = self.resolve_clearing_account(request)
        if clearing_id not in self._chart:
            issues.append(ValidationIssue(
                field="clearing_account_id",
                issue_type="not_found",
                message=f"Payment account not found: {clearing_id}",
            ))

        if request.kind == TransactionKind.SALE:
            required_roles = {
                "revenue_account": self._roles.revenue_account,
                "cogs_account": self._roles.cogs_account,
                "inventory_asset_account": self._roles.inventory_asset_account,
            }
        else:
            required_roles = {
                "inventory_asset_account": self._roles.inventory_asset_account,
            }
        for role, account_id in required_roles.items():
            if account_id not in self._chart:
                issues.append(ValidationIssue(
                    field=role,
                    issue_type="misconfigured",
                    message=f"Configured {role.replace('_', ' ')} does not exist: {account_id}",
                    suggested_fix="Check the LEDGER_ account role settings",
                ))

        if item is not None and request.kind == TransactionKind.SALE:
            if item.quantity < request.quantity:
                issues.append(ValidationIssue(
                    field="quantity",
                    issue_type="insufficient_stock",
                    message=(
                        f"Requested quantity ({request.quantity}) is not available "
                        f"in stock ({item.quantity})"
                    ),
                ))
            elif request.unit_price < item.unit_price:
                issues.append(ValidationIssue(
                    field="unit_price",
                    issue_type="below_cost",
                    message=(
                        f"Sale price ({request.unit_price}) is below the average "
                        f"cost ({item.unit_price:.2f})"
                    ),
                    severity="warning",
                ))

        if request.entry_date:
            max_date = date.today() + timedelta(days=self._future_days)
            if request.entry_date > max_date:
                issues.append(ValidationIssue(
                    field="entry_date",
                    issue_type="future_date",
                    message=f"Transaction date ({request.entry_date}) is in the future",
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, request: TransactionRequest) -> ValidationResult:
        """
        Run the full two-stage validation.

        Stage 2 only runs when stage 1 passes.
        """
        request_valid, issues = self._validate_request(request)

        ledger_valid = False
        if request_valid:
            ledger_valid, ledger_issues = self._validate_ledger(request)
            issues.extend(ledger_issues)

        return ValidationResult(
            request_valid=request_valid,
            ledger_valid=ledger_valid,
            issues=issues,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text for the person entering the transaction."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        if errors:
            lines.append("The transaction was not recorded:")
            for issue in errors:
                lines.append(f"  - {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"    ({issue.suggested_fix})")

        if result.warnings:
            lines.append("Please note:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines)
