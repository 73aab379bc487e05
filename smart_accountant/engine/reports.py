"""
Report Engine

Builds the financial statements from the chart of accounts, the entry
log and the inventory.

DESIGN DECISION: The income statement replays dated entries over a range,
while the balance sheet reads live cumulative balances. Both agree as long
as balances only ever change by posting entries, which the ledger poster
guarantees. Entry date is the field of record for every range; posting
order is never used for date arithmetic.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from smart_accountant.engine.chart import ChartOfAccounts, normal_side, signed_amount
from smart_accountant.engine.inventory import InventoryValuation
from smart_accountant.engine.poster import LedgerPoster
from smart_accountant.models.ledger import (
    Account,
    AccountRoles,
    AccountType,
    EntrySource,
    JournalEntry,
    NormalSide,
    TransactionKind,
)
from smart_accountant.models.reports import (
    BalanceSheet,
    BalanceSheetLine,
    DashboardSummary,
    IncomeStatement,
    InventoryValuationLine,
    InventoryValuationReport,
    PeriodChange,
    StatementLine,
)


HISTORY_SOURCES = {
    TransactionKind.SALE: {EntrySource.SALE, EntrySource.COST_OF_SALE},
    TransactionKind.PURCHASE: {EntrySource.PURCHASE},
}


def _total(amounts) -> Decimal:
    return sum(amounts, Decimal("0"))


class ReportEngine:
    """Read-only view over the ledger producing report view-models."""

    def __init__(
        self,
        chart: ChartOfAccounts,
        poster: LedgerPoster,
        inventory: InventoryValuation,
        roles: AccountRoles,
        tolerance: Decimal = Decimal("0.01"),
    ):
        self._chart = chart
        self._poster = poster
        self._inventory = inventory
        self._roles = roles
        self._tolerance = tolerance

    # -------------------------------------------------------------------------
    # Ranged balances
    # -------------------------------------------------------------------------

    def ranged_balance(
        self,
        account_id: str,
        side: NormalSide,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
    ) -> Decimal:
        """
        Net movement on `account_id` in [start, end], expressed on `side`.

        Open ends are unbounded. Every item on the account counts, even when
        one entry touches the account more than once.
        """
        total = Decimal("0")
        for entry in self._poster.entries_between(start, end):
            for item in entry.items:
                if item.account_id == account_id:
                    total += signed_amount(item, side)
        return total

    # -------------------------------------------------------------------------
    # Income statement
    # -------------------------------------------------------------------------

    def _statement_line(
        self,
        account: Account,
        start: Optional[dt.date],
        end: Optional[dt.date],
        compare_start: Optional[dt.date],
        compare_end: Optional[dt.date],
        is_comparison: bool,
    ) -> StatementLine:
        side = normal_side(account.type)
        current = self.ranged_balance(account.id, side, start, end)
        previous = (
            self.ranged_balance(account.id, side, compare_start, compare_end)
            if is_comparison else Decimal("0")
        )
        return StatementLine(
            account_id=account.id,
            code=account.code,
            name=account.name,
            type=account.type,
            amount=PeriodChange.between(current, previous),
        )

    @staticmethod
    def _sum_lines(lines: list[StatementLine]) -> PeriodChange:
        return PeriodChange.between(
            _total(line.amount.current for line in lines),
            _total(line.amount.previous for line in lines),
        )

    def income_statement(
        self,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
        compare_start: Optional[dt.date] = None,
        compare_end: Optional[dt.date] = None,
    ) -> IncomeStatement:
        """
        Income, cost of goods sold and other expenses for a date range.

        gross profit = income - COGS; net profit = gross profit - other
        expenses. Supplying either comparison bound turns on comparison.
        """
        is_comparison = compare_start is not None or compare_end is not None

        def line(account: Account) -> StatementLine:
            return self._statement_line(
                account, start, end, compare_start, compare_end, is_comparison
            )

        income = [line(a) for a in self._chart.by_type(AccountType.INCOME)]
        expenses = [line(a) for a in self._chart.by_type(AccountType.EXPENSE)]
        cogs = [row for row in expenses if row.account_id == self._roles.cogs_account]
        other = [row for row in expenses if row.account_id != self._roles.cogs_account]

        total_income = self._sum_lines(income)
        total_cogs = self._sum_lines(cogs)
        total_other = self._sum_lines(other)

        gross_current = total_income.current - total_cogs.current
        gross_previous = total_income.previous - total_cogs.previous
        net_current = gross_current - total_other.current
        net_previous = gross_previous - total_other.previous

        return IncomeStatement(
            start=start,
            end=end,
            compare_start=compare_start,
            compare_end=compare_end,
            is_comparison=is_comparison,
            income=income,
            cost_of_goods_sold=cogs,
            other_expenses=other,
            total_income=total_income,
            total_cogs=total_cogs,
            gross_profit=PeriodChange.between(gross_current, gross_previous),
            total_other_expenses=total_other,
            net_profit=PeriodChange.between(net_current, net_previous),
        )

    # -------------------------------------------------------------------------
    # Balance sheet
    # -------------------------------------------------------------------------

    def balance_sheet(self) -> BalanceSheet:
        """
        Point-in-time balance sheet from live account balances.

        balanced <=> |assets - (liabilities + equity)| < tolerance
        """
        def lines(account_type: AccountType) -> list[BalanceSheetLine]:
            return [
                BalanceSheetLine(
                    account_id=a.id, code=a.code, name=a.name, balance=a.balance
                )
                for a in self._chart.by_type(account_type)
            ]

        assets = lines(AccountType.ASSET)
        liabilities = lines(AccountType.LIABILITY)
        equity = lines(AccountType.EQUITY)

        total_assets = _total(row.balance for row in assets)
        total_liabilities = _total(row.balance for row in liabilities)
        total_equity = _total(row.balance for row in equity)

        return BalanceSheet(
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_equity=total_equity,
            balanced=abs(total_assets - (total_liabilities + total_equity)) < self._tolerance,
        )

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def inventory_valuation(self, category: Optional[str] = None) -> InventoryValuationReport:
        """Value of each item (quantity x average cost), optionally by category."""
        lines = [
            InventoryValuationLine(
                item_id=item.id,
                name=item.name,
                category=item.category,
                quantity=item.quantity,
                unit_price=item.unit_price,
                value=item.value,
            )
            for item in self._inventory.in_category(category)
        ]
        return InventoryValuationReport(
            category=category,
            lines=lines,
            total_value=_total(row.value for row in lines),
            total_inventory_value=self._inventory.total_value(),
            categories=self._inventory.categories(),
        )

    # -------------------------------------------------------------------------
    # Dashboard and history
    # -------------------------------------------------------------------------

    def dashboard_summary(self) -> DashboardSummary:
        def total(account_type: AccountType) -> Decimal:
            return _total(a.balance for a in self._chart.by_type(account_type))

        assets = self._chart.by_type(AccountType.ASSET)
        current_assets = _total(
            a.balance for a in assets if a.code.startswith(("11", "12"))
        )
        fixed_assets = _total(a.balance for a in assets if a.code.startswith("13"))
        total_income = total(AccountType.INCOME)
        total_expenses = total(AccountType.EXPENSE)

        return DashboardSummary(
            total_assets=total(AccountType.ASSET),
            total_liabilities=total(AccountType.LIABILITY),
            total_income=total_income,
            total_expenses=total_expenses,
            net_profit=total_income - total_expenses,
            current_assets=current_assets,
            fixed_assets=fixed_assets,
            asset_ratio=current_assets / fixed_assets * 100 if fixed_assets > 0 else Decimal("0"),
            account_count=len(self._chart),
            entry_count=len(self._poster),
        )

    def transaction_history(
        self,
        kind: Optional[TransactionKind] = None,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
        clearing_account_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[JournalEntry]:
        """
        Entries most-recent-first, filtered by origin, date range,
        account involved and description text.

        Origin comes from the entry's recorded source, never its wording.
        """
        sources = HISTORY_SOURCES.get(kind) if kind is not None else None
        needle = search.strip().lower() if search else ""

        results = []
        for entry in self._poster.history():
            if sources is not None and entry.source not in sources:
                continue
            if start is not None and entry.date < start:
                continue
            if end is not None and entry.date > end:
                continue
            if clearing_account_id and not any(
                i.account_id == clearing_account_id for i in entry.items
            ):
                continue
            if needle and needle not in entry.description.lower():
                continue
            results.append(entry)
        return results
