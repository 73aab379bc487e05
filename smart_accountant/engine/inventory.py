"""
Inventory Valuation

Moving weighted-average costing:
- Incoming stock with a price re-averages the unit cost
- Outgoing stock leaves the unit cost unchanged

IMPORTANT: This is not FIFO/LIFO. The cost of goods sold for a sale must
be read from the item BEFORE its quantity is decremented.

Quantity never goes below zero. A decrement larger than the stock on hand
floors at zero silently; sufficiency is checked by the transaction
validator before this module is ever called.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import uuid4

import structlog

from smart_accountant.engine.exceptions import TransactionValidationError, UnknownItemError
from smart_accountant.models.ledger import InventoryItem, ValidationIssue
from smart_accountant.models.reports import InventorySummary


logger = structlog.get_logger(__name__)

GENERAL_CATEGORY = "General"


def weighted_average_cost(
    old_quantity: Decimal,
    old_cost: Decimal,
    incoming_quantity: Decimal,
    incoming_cost: Decimal,
) -> Decimal:
    """Quantity-weighted average of the stock on hand and an incoming lot."""
    total_quantity = old_quantity + incoming_quantity
    if total_quantity <= 0:
        return old_cost
    return (old_quantity * old_cost + incoming_quantity * incoming_cost) / total_quantity


class InventoryValuation:
    """
    Stock items with their quantity and average unit cost.

    Quantity and cost change only through `apply_delta`.
    """

    def __init__(self, items: Optional[Iterable[InventoryItem]] = None):
        self._items: dict[str, InventoryItem] = {}
        for item in items or []:
            self._items[item.id] = item

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def __iter__(self):
        return iter(self._items.values())

    @property
    def items(self) -> list[InventoryItem]:
        return list(self._items.values())

    def get(self, item_id: str) -> Optional[InventoryItem]:
        return self._items.get(item_id)

    def require(self, item_id: str) -> InventoryItem:
        item = self._items.get(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        return item

    def add_item(
        self,
        name: str,
        quantity: Decimal = Decimal("0"),
        unit_price: Decimal = Decimal("0"),
        category: str = "",
        item_id: Optional[str] = None,
    ) -> InventoryItem:
        """
        Register a new stock item with its opening quantity and cost.

        Raises:
            TransactionValidationError: empty name, negative quantity or price
        """
        issues = []
        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Item name is required",
            ))
        if quantity < 0:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="invalid_value",
                message="Opening quantity cannot be negative",
            ))
        if unit_price < 0:
            issues.append(ValidationIssue(
                field="unit_price",
                issue_type="invalid_value",
                message="Unit cost cannot be negative",
            ))
        item_id = item_id or f"ITM-{uuid4().hex[:8].upper()}"
        if item_id in self._items:
            issues.append(ValidationIssue(
                field="item_id",
                issue_type="duplicate",
                message=f"Item id already exists: {item_id}",
            ))
        if issues:
            raise TransactionValidationError(issues)

        item = InventoryItem(
            id=item_id,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            category=category,
        )
        self._items[item.id] = item
        logger.info("inventory_item_added", item_id=item.id, name=item.name)
        return item

    def apply_delta(
        self,
        item: InventoryItem,
        quantity_delta: Decimal,
        new_unit_price: Optional[Decimal] = None,
    ) -> InventoryItem:
        """
        Apply a stock movement and return the updated item.

        Incoming with a price re-averages cost. Outgoing clamps at zero
        and keeps the unit cost.
        """
        unit_price = item.unit_price
        if quantity_delta > 0 and new_unit_price is not None:
            unit_price = weighted_average_cost(
                item.quantity, item.unit_price, quantity_delta, new_unit_price
            )

        new_quantity = item.quantity + quantity_delta
        if new_quantity < 0:
            logger.warning(
                "inventory_quantity_clamped",
                item_id=item.id,
                shortfall=str(-new_quantity),
            )
            new_quantity = Decimal("0")

        updated = item.model_copy(update={"quantity": new_quantity, "unit_price": unit_price})
        self._items[updated.id] = updated
        return updated

    def categories(self) -> list[str]:
        """Distinct categories in item order; blank counts as general."""
        seen: list[str] = []
        for item in self._items.values():
            category = item.category or GENERAL_CATEGORY
            if category not in seen:
                seen.append(category)
        return seen

    def in_category(self, category: Optional[str]) -> list[InventoryItem]:
        """Items in a category; `None` is every item, blank is the general bucket."""
        if category is None:
            return self.items
        category = category.strip() or GENERAL_CATEGORY
        return [
            item for item in self._items.values()
            if (item.category or GENERAL_CATEGORY) == category
        ]

    def low_stock(self, threshold: int) -> list[InventoryItem]:
        return [item for item in self._items.values() if item.quantity < threshold]

    def total_value(self) -> Decimal:
        return sum((item.value for item in self._items.values()), Decimal("0"))

    def summary(self, low_stock_threshold: int) -> InventorySummary:
        return InventorySummary(
            total_value=self.total_value(),
            total_quantity=sum((i.quantity for i in self._items.values()), Decimal("0")),
            item_count=len(self._items),
            low_stock_count=len(self.low_stock(low_stock_threshold)),
        )
