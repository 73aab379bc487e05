"""Tests for the chart of accounts and the ledger poster."""

import pytest
from datetime import date
from decimal import Decimal

from smart_accountant.engine import ChartOfAccounts, LedgerPoster, UnbalancedEntryError, normal_side
from smart_accountant.engine.chart import default_chart
from smart_accountant.models import (
    Account,
    AccountType,
    JournalEntry,
    JournalItem,
    NormalSide,
)


def entry(entry_id, *items, on=date(2024, 3, 1)):
    return JournalEntry(id=entry_id, date=on, items=tuple(items))


def dr(account_id, amount):
    return JournalItem(account_id=account_id, debit=Decimal(amount))


def cr(account_id, amount):
    return JournalItem(account_id=account_id, credit=Decimal(amount))


@pytest.fixture
def chart():
    return ChartOfAccounts([
        Account(id="cash", code="1101", name="Cash", type=AccountType.ASSET, balance=Decimal("1000")),
        Account(id="rev", code="4101", name="Revenue", type=AccountType.INCOME),
        Account(id="ap", code="2101", name="Payables", type=AccountType.LIABILITY),
        Account(id="rent", code="5102", name="Rent", type=AccountType.EXPENSE),
    ])


class TestChartOfAccounts:
    """Tests for account lookup and the normal-balance rule."""

    @pytest.mark.parametrize("account_type,side", [
        (AccountType.ASSET, NormalSide.DEBIT),
        (AccountType.EXPENSE, NormalSide.DEBIT),
        (AccountType.LIABILITY, NormalSide.CREDIT),
        (AccountType.EQUITY, NormalSide.CREDIT),
        (AccountType.INCOME, NormalSide.CREDIT),
    ])
    def test_normal_side(self, account_type, side):
        assert normal_side(account_type) == side

    def test_apply_delta_debit_normal(self, chart):
        cash = chart.get("cash")
        assert chart.apply_delta(cash, dr("cash", "50")) == Decimal("1050")
        assert chart.apply_delta(cash, cr("cash", "80")) == Decimal("970")

    def test_apply_delta_credit_normal(self, chart):
        payables = chart.get("ap")
        assert chart.apply_delta(payables, cr("ap", "300")) == Decimal("300")
        assert chart.apply_delta(payables, dr("ap", "100")) == Decimal("200")

    def test_credit_to_debit_normal_account_can_go_negative(self, chart):
        """Balances are signed; an overdrawn cash account goes below zero."""
        cash = chart.get("cash")
        assert chart.apply_delta(cash, cr("cash", "1500")) == Decimal("-500")

    def test_unknown_account_is_ignored(self, chart):
        assert chart.get("missing") is None
        assert chart.apply_item(dr("missing", "10")) is None
        assert chart.get("cash").balance == Decimal("1000")

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate account id"):
            ChartOfAccounts([
                Account(id="1", code="1101", name="Cash", type=AccountType.ASSET),
                Account(id="1", code="1102", name="Bank", type=AccountType.ASSET),
            ])

    def test_default_chart(self):
        """The seed chart is used when no accounts are given."""
        chart = ChartOfAccounts()
        assert len(chart) == len(default_chart())
        assert chart.get_by_code("4101").name == "Sales Revenue"
        assert all(a.balance == Decimal("0") for a in chart)

    def test_default_chart_is_a_fresh_copy(self):
        first, second = ChartOfAccounts(), ChartOfAccounts()
        first.apply_item(dr("1", "10"))
        assert second.get("1").balance == Decimal("0")

    def test_clearing_accounts_are_cash_and_bank(self):
        chart = ChartOfAccounts()
        assert [a.name for a in chart.clearing_accounts()] == ["Cash", "Bank"]

    def test_search_by_name_code_and_type(self):
        chart = ChartOfAccounts()
        assert [a.id for a in chart.search("cash")] == ["1"]
        assert [a.id for a in chart.search("2101")] == ["6"]
        assert len(chart.search("income")) == 2
        assert len(chart.search("  ")) == len(chart)

    def test_by_type(self, chart):
        assert [a.id for a in chart.by_type(AccountType.EXPENSE)] == ["rent"]


class TestLedgerPoster:
    """Tests for posting entries through the chart."""

    def test_scenario_cash_sale_posting(self, chart):
        """Cash 1000 debited 200 and Revenue credited 200 in one entry."""
        poster = LedgerPoster(chart)
        poster.post_entry(entry("JV-1", dr("cash", "200"), cr("rev", "200")))

        assert chart.get("cash").balance == Decimal("1200")
        assert chart.get("rev").balance == Decimal("200")
        assert len(poster) == 1

    def test_entry_touching_an_account_twice(self, chart):
        poster = LedgerPoster(chart)
        poster.post_entry(entry(
            "JV-1", dr("cash", "100"), dr("cash", "50"), cr("rev", "150"),
        ))
        assert chart.get("cash").balance == Decimal("1150")

    def test_unbalanced_entry_rejected_before_any_change(self, chart):
        poster = LedgerPoster(chart)
        with pytest.raises(UnbalancedEntryError) as exc_info:
            poster.post_entry(entry("JV-1", dr("cash", "200"), cr("rev", "150")))

        assert exc_info.value.entry_id == "JV-1"
        assert chart.get("cash").balance == Decimal("1000")
        assert chart.get("rev").balance == Decimal("0")
        assert poster.entries == []

    def test_difference_within_tolerance_is_balanced(self, chart):
        poster = LedgerPoster(chart)
        poster.post_entry(entry("JV-1", dr("cash", "100.004"), cr("rev", "100")))
        assert len(poster) == 1

    def test_permissive_mode_accepts_unbalanced_entry(self, chart):
        """Per-account deltas are still applied correctly."""
        poster = LedgerPoster(chart, enforce_balance=False)
        poster.post_entry(entry("JV-1", dr("cash", "200"), cr("rev", "150")))

        assert chart.get("cash").balance == Decimal("1200")
        assert chart.get("rev").balance == Decimal("150")

    def test_entry_on_unknown_account_is_still_stored(self, chart):
        poster = LedgerPoster(chart)
        poster.post_entry(entry("JV-1", dr("ghost", "10"), cr("rev", "10")))
        assert poster.get("JV-1") is not None
        assert chart.get("rev").balance == Decimal("10")

    def test_history_is_most_recent_first(self, chart):
        poster = LedgerPoster(chart)
        for i in range(3):
            poster.post_entry(entry(f"JV-{i}", dr("cash", "1"), cr("rev", "1")))

        assert [e.id for e in poster.entries] == ["JV-0", "JV-1", "JV-2"]
        assert [e.id for e in poster.history()] == ["JV-2", "JV-1", "JV-0"]

    def test_entries_between_is_inclusive(self, chart):
        poster = LedgerPoster(chart)
        for day in (1, 15, 31):
            poster.post_entry(entry(
                f"JV-{day}", dr("cash", "1"), cr("rev", "1"), on=date(2024, 1, day),
            ))

        ids = [e.id for e in poster.entries_between(date(2024, 1, 1), date(2024, 1, 15))]
        assert ids == ["JV-1", "JV-15"]
        assert len(poster.entries_between(start=date(2024, 1, 16))) == 1
        assert len(poster.entries_between()) == 3
