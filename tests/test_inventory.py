"""Tests for weighted-average inventory valuation."""

import pytest
from decimal import Decimal

from smart_accountant.engine import (
    InventoryValuation,
    TransactionValidationError,
    UnknownItemError,
    weighted_average_cost,
)
from smart_accountant.models import InventoryItem


@pytest.fixture
def inventory():
    return InventoryValuation([
        InventoryItem(id="A", name="Widget", quantity=Decimal("5"), unit_price=Decimal("10"), category="Tools"),
        InventoryItem(id="B", name="Bolt", quantity=Decimal("2"), unit_price=Decimal("1")),
    ])


class TestWeightedAverage:
    """Tests for the moving average cost rule."""

    def test_scenario_purchase_reaverages_cost(self, inventory):
        """10 units at 20 into 5 units at 10."""
        updated = inventory.apply_delta(inventory.get("A"), Decimal("10"), Decimal("20"))

        assert updated.quantity == Decimal("15")
        assert updated.unit_price == Decimal("250") / Decimal("15")
        assert inventory.get("A") == updated

    def test_first_purchase_takes_the_purchase_price(self):
        assert weighted_average_cost(
            Decimal("0"), Decimal("0"), Decimal("4"), Decimal("7.5")
        ) == Decimal("7.5")

    def test_outgoing_keeps_unit_cost(self, inventory):
        updated = inventory.apply_delta(inventory.get("A"), Decimal("-3"))
        assert updated.quantity == Decimal("2")
        assert updated.unit_price == Decimal("10")

    def test_incoming_without_price_keeps_unit_cost(self, inventory):
        updated = inventory.apply_delta(inventory.get("A"), Decimal("5"))
        assert updated.quantity == Decimal("10")
        assert updated.unit_price == Decimal("10")

    def test_outgoing_clamps_at_zero(self, inventory):
        """Removing more than is on hand floors the quantity at zero."""
        updated = inventory.apply_delta(inventory.get("B"), Decimal("-5"))
        assert updated.quantity == Decimal("0")
        assert updated.unit_price == Decimal("1")

    def test_outgoing_exactly_to_zero(self, inventory):
        updated = inventory.apply_delta(inventory.get("B"), Decimal("-2"))
        assert updated.quantity == Decimal("0")

    def test_apply_delta_does_not_mutate_the_given_item(self, inventory):
        original = inventory.get("A")
        inventory.apply_delta(original, Decimal("-1"))
        assert original.quantity == Decimal("5")


class TestInventoryValuation:
    """Tests for item management and stock summaries."""

    def test_add_item(self):
        inventory = InventoryValuation()
        item = inventory.add_item("Chair", Decimal("3"), Decimal("40"), category="Furniture")

        assert item.id.startswith("ITM-")
        assert inventory.get(item.id) == item
        assert item in inventory.items

    @pytest.mark.parametrize("name,quantity,price", [
        ("", Decimal("1"), Decimal("1")),
        ("Chair", Decimal("-1"), Decimal("1")),
        ("Chair", Decimal("1"), Decimal("-1")),
    ])
    def test_add_item_rejects_invalid_values(self, name, quantity, price):
        inventory = InventoryValuation()
        with pytest.raises(TransactionValidationError):
            inventory.add_item(name, quantity, price)
        assert len(inventory) == 0

    def test_add_item_rejects_duplicate_id(self, inventory):
        with pytest.raises(TransactionValidationError) as exc_info:
            inventory.add_item("Other", item_id="A")
        assert exc_info.value.issues[0].issue_type == "duplicate"

    def test_require_unknown_item(self, inventory):
        with pytest.raises(UnknownItemError):
            inventory.require("missing")

    def test_categories_report_blank_as_general(self, inventory):
        assert inventory.categories() == ["Tools", "General"]
        assert [i.id for i in inventory.in_category("General")] == ["B"]
        assert len(inventory.in_category(None)) == 2

    @pytest.mark.parametrize("category", ["", "  "])
    def test_blank_category_selects_general_items(self, inventory, category):
        assert [i.id for i in inventory.in_category(category)] == ["B"]

    def test_low_stock(self, inventory):
        assert [i.id for i in inventory.low_stock(5)] == ["B"]

    def test_summary(self, inventory):
        summary = inventory.summary(low_stock_threshold=5)
        assert summary.total_value == Decimal("52")
        assert summary.total_quantity == Decimal("7")
        assert summary.item_count == 2
        assert summary.low_stock_count == 1
