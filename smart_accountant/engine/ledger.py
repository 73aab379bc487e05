"""
Ledger Context

The single explicit value that holds the books: chart of accounts,
entry log, inventory and account roles. There is no module-level state;
every flow receives the ledger it works on.

ATOMICITY: `apply` checks every entry and the inventory movement of a
transaction before the first mutation. Once it starts mutating it cannot
fail, so a transaction is applied completely or not at all.

Persistence is never a side effect of a mutation. Callers save explicitly.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

import structlog

from smart_accountant.config.settings import LedgerSettings
from smart_accountant.engine.chart import ChartOfAccounts
from smart_accountant.engine.composer import TransactionComposer
from smart_accountant.engine.inventory import InventoryValuation
from smart_accountant.engine.poster import LedgerPoster
from smart_accountant.engine.reports import ReportEngine
from smart_accountant.models.ledger import (
    Account,
    AccountRoles,
    AppSettings,
    ComposedTransaction,
    InventoryItem,
    JournalEntry,
    LedgerSnapshot,
    TransactionRequest,
)


logger = structlog.get_logger(__name__)


def roles_from_settings(settings: LedgerSettings) -> AccountRoles:
    return AccountRoles(
        revenue_account=settings.revenue_account,
        cogs_account=settings.cogs_account,
        inventory_asset_account=settings.inventory_asset_account,
        default_clearing_account=settings.default_clearing_account,
    )


class Ledger:
    """
    The books of one business.

    Usage:
        ledger = Ledger.from_settings(get_settings().ledger)
        ledger.inventory.add_item("Widget", Decimal("5"), Decimal("10"))
        ledger.record(TransactionRequest(kind="sale", ...))
        ledger.reports.balance_sheet()
    """

    def __init__(
        self,
        roles: AccountRoles,
        accounts: Optional[Iterable[Account]] = None,
        entries: Optional[Iterable[JournalEntry]] = None,
        inventory: Optional[Iterable[InventoryItem]] = None,
        enforce_balance: bool = True,
        tolerance: Decimal = Decimal("0.01"),
        low_stock_threshold: int = 5,
    ):
        self.roles = roles
        self.low_stock_threshold = low_stock_threshold
        self.chart = ChartOfAccounts(accounts)
        self.inventory = InventoryValuation(inventory)
        self.poster = LedgerPoster(
            self.chart,
            entries=entries,
            enforce_balance=enforce_balance,
            tolerance=tolerance,
        )
        self.composer = TransactionComposer(self.chart, self.inventory, roles)
        self.reports = ReportEngine(
            self.chart, self.poster, self.inventory, roles, tolerance=tolerance
        )

    @classmethod
    def from_settings(
        cls,
        settings: LedgerSettings,
        accounts: Optional[Iterable[Account]] = None,
        entries: Optional[Iterable[JournalEntry]] = None,
        inventory: Optional[Iterable[InventoryItem]] = None,
    ) -> "Ledger":
        return cls(
            roles=roles_from_settings(settings),
            accounts=accounts,
            entries=entries,
            inventory=inventory,
            enforce_balance=settings.enforce_balanced_entries,
            tolerance=Decimal(str(settings.balance_tolerance)),
            low_stock_threshold=settings.low_stock_threshold,
        )

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot, settings: LedgerSettings) -> "Ledger":
        """
        Build a ledger from a snapshot.

        Balances are taken as stored; entries are not replayed. The ledger
        works on copies so the snapshot object stays untouched.
        """
        return cls.from_settings(
            settings,
            accounts=[a.model_copy() for a in snapshot.accounts],
            entries=list(snapshot.entries),
            inventory=[i.model_copy() for i in snapshot.inventory],
        )

    def to_snapshot(self, app_settings: Optional[AppSettings] = None) -> LedgerSnapshot:
        """Copy of the current state; later postings do not affect it."""
        return LedgerSnapshot(
            accounts=[a.model_copy() for a in self.chart],
            entries=self.poster.entries,
            inventory=[i.model_copy() for i in self.inventory],
            settings=app_settings.model_copy() if app_settings else None,
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def apply(self, composed: ComposedTransaction) -> None:
        """
        Apply a composed transaction all-or-nothing.

        Raises (before anything changes):
            UnbalancedEntryError: an entry fails the balance invariant
            UnknownItemError: the inventory movement names a missing item
        """
        for entry in composed.entries:
            self.poster.check_entry(entry)

        item = None
        delta = composed.inventory_delta
        if delta is not None:
            item = self.inventory.require(delta.item_id)

        for entry in composed.entries:
            self.poster.post_entry(entry)

        if delta is not None:
            updated = self.inventory.apply_delta(item, delta.quantity_delta, delta.unit_price)
            logger.info(
                "inventory_adjusted",
                item_id=updated.id,
                quantity_delta=str(delta.quantity_delta),
                quantity=str(updated.quantity),
                unit_price=str(updated.unit_price),
            )

    def record(self, request: TransactionRequest) -> ComposedTransaction:
        """Compose and apply a sale or purchase."""
        composed = self.composer.compose(request)
        self.apply(composed)
        return composed

    def post_manual(
        self,
        description: str,
        lines: Iterable[Mapping[str, Any]],
        entry_date: Optional[date] = None,
    ) -> JournalEntry:
        """Compose and post a manual journal voucher."""
        entry = self.composer.compose_manual(description, lines, entry_date)
        self.apply(ComposedTransaction(entries=[entry]))
        return entry
