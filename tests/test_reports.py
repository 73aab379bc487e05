"""Tests for the report engine."""

import pytest
from datetime import date
from decimal import Decimal

from smart_accountant.engine import Ledger
from smart_accountant.models import (
    Account,
    AccountType,
    JournalEntry,
    JournalItem,
    NormalSide,
    TransactionKind,
    TransactionRequest,
)

from conftest import BANK, CAPITAL, CASH, COGS, FURNITURE, INVENTORY, PAYABLES, RENT, REVENUE


def post(ledger, entry_id, on, *lines):
    """lines: (account_id, debit, credit)"""
    ledger.poster.post_entry(JournalEntry(
        id=entry_id,
        date=on,
        items=tuple(
            JournalItem(account_id=a, debit=Decimal(str(d)), credit=Decimal(str(c)))
            for a, d, c in lines
        ),
    ))


@pytest.fixture
def trading_ledger(ledger):
    """
    January: sales 1000, COGS 400, rent 300.
    February: sales 1500, COGS 600, rent 300.
    """
    post(ledger, "J1", date(2024, 1, 10), (CASH, 1000, 0), (REVENUE, 0, 1000))
    post(ledger, "J2", date(2024, 1, 10), (COGS, 400, 0), (INVENTORY, 0, 400))
    post(ledger, "J3", date(2024, 1, 31), (RENT, 300, 0), (CASH, 0, 300))
    post(ledger, "F1", date(2024, 2, 1), (BANK, 1500, 0), (REVENUE, 0, 1500))
    post(ledger, "F2", date(2024, 2, 1), (COGS, 600, 0), (INVENTORY, 0, 600))
    post(ledger, "F3", date(2024, 2, 29), (RENT, 300, 0), (BANK, 0, 300))
    return ledger


class TestRangedBalance:
    """Tests for date-ranged account movement."""

    def test_range_is_inclusive(self, trading_ledger):
        reports = trading_ledger.reports
        assert reports.ranged_balance(
            REVENUE, NormalSide.CREDIT, date(2024, 1, 10), date(2024, 2, 1)
        ) == Decimal("2500")
        assert reports.ranged_balance(
            REVENUE, NormalSide.CREDIT, date(2024, 1, 11), date(2024, 1, 31)
        ) == Decimal("0")

    def test_open_ended_range(self, trading_ledger):
        reports = trading_ledger.reports
        assert reports.ranged_balance(CASH, NormalSide.DEBIT) == Decimal("700")
        assert reports.ranged_balance(CASH, NormalSide.DEBIT, end=date(2024, 1, 10)) == Decimal("1000")

    def test_side_determines_sign(self, trading_ledger):
        assert trading_ledger.reports.ranged_balance(REVENUE, NormalSide.DEBIT) == Decimal("-2500")


class TestIncomeStatement:
    """Tests for the income statement."""

    def test_single_period(self, trading_ledger):
        statement = trading_ledger.reports.income_statement(date(2024, 1, 1), date(2024, 1, 31))

        assert statement.is_comparison is False
        assert statement.total_income.current == Decimal("1000")
        assert statement.total_cogs.current == Decimal("400")
        assert statement.gross_profit.current == Decimal("600")
        assert statement.total_other_expenses.current == Decimal("300")
        assert statement.net_profit.current == Decimal("300")

    def test_cogs_is_chosen_by_role(self, trading_ledger):
        statement = trading_ledger.reports.income_statement()
        assert [line.account_id for line in statement.cost_of_goods_sold] == [COGS]
        assert COGS not in [line.account_id for line in statement.other_expenses]

    def test_comparison_period(self, trading_ledger):
        statement = trading_ledger.reports.income_statement(
            date(2024, 2, 1), date(2024, 2, 29),
            compare_start=date(2024, 1, 1), compare_end=date(2024, 1, 31),
        )

        assert statement.is_comparison is True
        assert statement.total_income.current == Decimal("1500")
        assert statement.total_income.previous == Decimal("1000")
        assert statement.total_income.diff == Decimal("500")
        assert statement.total_income.percent == Decimal("50")
        assert statement.net_profit.current == Decimal("600")
        assert statement.net_profit.previous == Decimal("300")
        assert statement.net_profit.percent == Decimal("100")

        rent, = [line for line in statement.other_expenses if line.account_id == RENT]
        assert rent.amount.diff == Decimal("0")
        assert rent.amount.percent == Decimal("0")

    def test_line_without_previous_has_zero_percent(self, trading_ledger):
        statement = trading_ledger.reports.income_statement(
            date(2024, 2, 1), date(2024, 2, 29),
            compare_start=date(2023, 1, 1), compare_end=date(2023, 12, 31),
        )
        assert statement.total_income.diff == Decimal("1500")
        assert statement.total_income.percent == Decimal("0")

    def test_reports_are_idempotent(self, trading_ledger):
        """Generating a report twice gives the same result and changes nothing."""
        reports = trading_ledger.reports
        first = reports.income_statement(date(2024, 1, 1), date(2024, 2, 29))
        balance_sheet = reports.balance_sheet()

        assert reports.income_statement(date(2024, 1, 1), date(2024, 2, 29)) == first
        assert reports.balance_sheet() == balance_sheet


class TestBalanceSheet:
    """Tests for the balance sheet identity."""

    def _ledger(self, roles, equity):
        return Ledger(roles, accounts=[
            Account(id="a", code="1101", name="Cash", type=AccountType.ASSET, balance=Decimal("1000")),
            Account(id="l", code="2101", name="Loans", type=AccountType.LIABILITY, balance=Decimal("400")),
            Account(id="e", code="3101", name="Capital", type=AccountType.EQUITY, balance=Decimal(equity)),
        ])

    def test_scenario_balanced(self, roles):
        sheet = self._ledger(roles, "600").reports.balance_sheet()

        assert sheet.total_assets == Decimal("1000")
        assert sheet.total_liabilities == Decimal("400")
        assert sheet.total_equity == Decimal("600")
        assert sheet.balanced is True

    def test_scenario_unbalanced(self, roles):
        sheet = self._ledger(roles, "500").reports.balance_sheet()
        assert sheet.balanced is False

    def test_posting_balanced_entries_keeps_identity(self, stocked_ledger):
        post(stocked_ledger, "C1", date(2024, 1, 1), (CASH, 5000, 0), (CAPITAL, 0, 5000))
        post(stocked_ledger, "C2", date(2024, 1, 2), (FURNITURE, 800, 0), (PAYABLES, 0, 800))
        assert stocked_ledger.reports.balance_sheet().balanced is True


class TestInventoryValuationReport:
    """Tests for the stock valuation report."""

    def test_all_items(self, stocked_ledger):
        report = stocked_ledger.reports.inventory_valuation()

        assert [line.value for line in report.lines] == [Decimal("250"), Decimal("100")]
        assert report.total_value == Decimal("350")
        assert report.total_inventory_value == Decimal("350")
        assert report.categories == ["Tools", "General"]

    def test_filtered_by_category(self, stocked_ledger):
        report = stocked_ledger.reports.inventory_valuation("Tools")

        assert [line.item_id for line in report.lines] == ["ITM-1"]
        assert report.total_value == Decimal("250")
        assert report.total_inventory_value == Decimal("350")


class TestDashboardAndHistory:
    """Tests for the dashboard summary and transaction history."""

    def test_dashboard_summary(self, trading_ledger):
        post(trading_ledger, "X1", date(2024, 3, 1), (FURNITURE, 200, 0), (CASH, 0, 200))
        summary = trading_ledger.reports.dashboard_summary()

        assert summary.total_income == Decimal("2500")
        assert summary.total_expenses == Decimal("1600")
        assert summary.net_profit == Decimal("900")
        assert summary.fixed_assets == Decimal("200")
        # Cash 500 + Bank 1200 + Inventory -1000
        assert summary.current_assets == Decimal("700")
        assert summary.asset_ratio == Decimal("350")
        assert summary.entry_count == 7

    def test_dashboard_ratio_without_fixed_assets(self, ledger):
        assert ledger.reports.dashboard_summary().asset_ratio == Decimal("0")

    def test_history_filters_by_recorded_source(self, stocked_ledger):
        stocked_ledger.record(TransactionRequest(
            kind=TransactionKind.PURCHASE, item_id="ITM-1",
            quantity=Decimal("1"), unit_price=Decimal("50"),
            description="Sales conference swag",
        ))
        stocked_ledger.record(TransactionRequest(
            kind=TransactionKind.SALE, item_id="ITM-1",
            quantity=Decimal("1"), unit_price=Decimal("90"),
        ))
        reports = stocked_ledger.reports

        sales = reports.transaction_history(kind=TransactionKind.SALE)
        purchases = reports.transaction_history(kind=TransactionKind.PURCHASE)

        assert [e.source.value for e in sales] == ["cost_of_sale", "sale"]
        assert [e.description for e in purchases] == ["Sales conference swag"]
        assert len(reports.transaction_history()) == 3

    def test_history_filters(self, trading_ledger):
        reports = trading_ledger.reports

        assert [e.id for e in reports.transaction_history(clearing_account_id=BANK)] == ["F3", "F1"]
        assert [e.id for e in reports.transaction_history(
            start=date(2024, 1, 31), end=date(2024, 2, 1)
        )] == ["F2", "F1", "J3"]

    def test_history_search_on_description(self, stocked_ledger):
        stocked_ledger.post_manual("Office rent March", [
            {"account_id": RENT, "debit": 10}, {"account_id": CASH, "credit": 10},
        ])
        assert len(stocked_ledger.reports.transaction_history(search="rent")) == 1
        assert stocked_ledger.reports.transaction_history(search="payroll") == []
