"""
Engine Exceptions

Every error the bookkeeping engine raises is detected before any state
is mutated. Catching one of these means the ledger is exactly as it was.
"""

from typing import Optional

from smart_accountant.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for bookkeeping engine operations."""
    pass


class TransactionValidationError(LedgerError):
    """
    A transaction or entry failed validation.

    Non-positive quantity or price, missing account selection,
    unknown item, insufficient stock for a sale.
    """

    def __init__(self, issues: list[ValidationIssue], message: Optional[str] = None):
        self.issues = issues
        if message is None:
            message = "; ".join(issue.message for issue in issues) or "Transaction is invalid"
        super().__init__(message)

    def issues_as_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


class UnbalancedEntryError(LedgerError):
    """A journal entry's debits and credits differ."""

    def __init__(self, entry_id: str, total_debit, total_credit):
        self.entry_id = entry_id
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Entry {entry_id} is unbalanced: debits {total_debit} != credits {total_credit}"
        )


class UnknownItemError(LedgerError):
    """An inventory movement referenced an item that does not exist."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Inventory item not found: {item_id}")


class ImportFormatError(LedgerError):
    """
    A snapshot could not be imported.

    Missing required top-level fields, unparsable JSON or invalid records.
    The ledger that was loaded before the import attempt is left untouched.
    """
    pass
