"""Shared fixtures: a ledger on the seed chart, with and without stock."""

from datetime import date
from decimal import Decimal

import pytest

from smart_accountant.engine import Ledger
from smart_accountant.models import AccountRoles


# Seed chart ids: 1 Cash, 2 Bank, 3 Inventory, 5 Furniture, 6 Payables,
# 7 Capital, 8 Sales Revenue, 11 Rent, 14 Cost of Goods Sold
CASH, BANK, INVENTORY, FURNITURE, PAYABLES, CAPITAL = "1", "2", "3", "5", "6", "7"
REVENUE, RENT, COGS = "8", "11", "14"


@pytest.fixture
def roles() -> AccountRoles:
    return AccountRoles(
        revenue_account=REVENUE,
        cogs_account=COGS,
        inventory_asset_account=INVENTORY,
        default_clearing_account=CASH,
    )


@pytest.fixture
def ledger(roles) -> Ledger:
    return Ledger(roles)


@pytest.fixture
def stocked_ledger(ledger) -> Ledger:
    """Widget: 5 units at 50. Bolt: 100 units at 1, no category."""
    ledger.inventory.add_item(
        "Widget", Decimal("5"), Decimal("50"), category="Tools", item_id="ITM-1"
    )
    ledger.inventory.add_item("Bolt", Decimal("100"), Decimal("1"), item_id="ITM-2")
    return ledger


@pytest.fixture
def today() -> date:
    return date.today()
