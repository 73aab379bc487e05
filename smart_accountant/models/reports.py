"""
Report View-Models

These are the read-only structures the report engine hands to the
presentation layer. Nothing here is persisted.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from smart_accountant.models.ledger import AccountType


class PeriodChange(BaseModel):
    """
    A figure for the current period, optionally compared to a previous one.

    `percent` is relative to the magnitude of the previous figure and is
    zero when there is nothing to compare against.
    """

    current: Decimal = Decimal("0")
    previous: Decimal = Decimal("0")
    diff: Decimal = Decimal("0")
    percent: Decimal = Decimal("0")

    @classmethod
    def between(cls, current: Decimal, previous: Decimal) -> "PeriodChange":
        diff = current - previous
        percent = diff / abs(previous) * 100 if previous != 0 else Decimal("0")
        return cls(current=current, previous=previous, diff=diff, percent=percent)


class StatementLine(BaseModel):
    """One account on the income statement."""

    account_id: str
    code: str
    name: str
    type: AccountType
    amount: PeriodChange


class IncomeStatement(BaseModel):
    """Income statement for a date range, with optional comparison range."""

    start: Optional[dt.date] = None
    end: Optional[dt.date] = None
    compare_start: Optional[dt.date] = None
    compare_end: Optional[dt.date] = None
    is_comparison: bool = False

    income: list[StatementLine] = Field(default_factory=list)
    cost_of_goods_sold: list[StatementLine] = Field(default_factory=list)
    other_expenses: list[StatementLine] = Field(default_factory=list)

    total_income: PeriodChange = Field(default_factory=PeriodChange)
    total_cogs: PeriodChange = Field(default_factory=PeriodChange)
    gross_profit: PeriodChange = Field(default_factory=PeriodChange)
    total_other_expenses: PeriodChange = Field(default_factory=PeriodChange)
    net_profit: PeriodChange = Field(default_factory=PeriodChange)


class BalanceSheetLine(BaseModel):
    """One account on the balance sheet."""

    account_id: str
    code: str
    name: str
    balance: Decimal


class BalanceSheet(BaseModel):
    """
    Point-in-time balance sheet from live account balances.

    `balanced` reports the identity Assets = Liabilities + Equity
    within the configured tolerance.
    """

    assets: list[BalanceSheetLine] = Field(default_factory=list)
    liabilities: list[BalanceSheetLine] = Field(default_factory=list)
    equity: list[BalanceSheetLine] = Field(default_factory=list)

    total_assets: Decimal = Decimal("0")
    total_liabilities: Decimal = Decimal("0")
    total_equity: Decimal = Decimal("0")
    balanced: bool = True

    @property
    def difference(self) -> Decimal:
        return self.total_assets - (self.total_liabilities + self.total_equity)


class InventoryValuationLine(BaseModel):
    """One stock item on the inventory valuation report."""

    item_id: str
    name: str
    category: str
    quantity: Decimal
    unit_price: Decimal
    value: Decimal


class InventoryValuationReport(BaseModel):
    """Inventory valuation, optionally filtered to one category."""

    category: Optional[str] = None
    lines: list[InventoryValuationLine] = Field(default_factory=list)
    total_value: Decimal = Decimal("0")
    total_inventory_value: Decimal = Decimal("0")
    categories: list[str] = Field(default_factory=list)


class InventorySummary(BaseModel):
    """Headline stock figures."""

    total_value: Decimal = Decimal("0")
    total_quantity: Decimal = Decimal("0")
    item_count: int = 0
    low_stock_count: int = 0


class DashboardSummary(BaseModel):
    """Headline figures from live account balances."""

    total_assets: Decimal = Decimal("0")
    total_liabilities: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    current_assets: Decimal = Decimal("0")
    fixed_assets: Decimal = Decimal("0")
    asset_ratio: Decimal = Decimal("0")
    account_count: int = 0
    entry_count: int = 0
