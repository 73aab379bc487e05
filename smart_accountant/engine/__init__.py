"""
Bookkeeping Engine Package

Chart of accounts, ledger posting, transaction composition, inventory
valuation and reports. Everything here is synchronous and single-writer.
"""

from smart_accountant.engine.chart import (
    ChartOfAccounts,
    default_chart,
    normal_side,
)
from smart_accountant.engine.composer import TransactionComposer
from smart_accountant.engine.exceptions import (
    ImportFormatError,
    LedgerError,
    TransactionValidationError,
    UnbalancedEntryError,
    UnknownItemError,
)
from smart_accountant.engine.inventory import InventoryValuation, weighted_average_cost
from smart_accountant.engine.ledger import Ledger, roles_from_settings
from smart_accountant.engine.poster import LedgerPoster
from smart_accountant.engine.reports import ReportEngine
from smart_accountant.engine.snapshot import (
    backup_filename,
    export_snapshot,
    import_snapshot,
    snapshot_to_dict,
    snapshot_to_json,
)

__all__ = [
    # Components
    "ChartOfAccounts",
    "InventoryValuation",
    "Ledger",
    "LedgerPoster",
    "ReportEngine",
    "TransactionComposer",
    # Helpers
    "backup_filename",
    "default_chart",
    "normal_side",
    "export_snapshot",
    "import_snapshot",
    "roles_from_settings",
    "snapshot_to_dict",
    "snapshot_to_json",
    "weighted_average_cost",
    # Exceptions
    "ImportFormatError",
    "LedgerError",
    "TransactionValidationError",
    "UnbalancedEntryError",
    "UnknownItemError",
]
