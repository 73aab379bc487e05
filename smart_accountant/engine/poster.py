"""
Ledger Poster

Applies journal entries to account balances and keeps the entry log.

The log is the authoritative history. Balances change as a batch for
each entry: either every item of the entry is applied, or (when the
entry is rejected) none is.
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from smart_accountant.engine.chart import ChartOfAccounts
from smart_accountant.engine.exceptions import UnbalancedEntryError
from smart_accountant.models.ledger import JournalEntry


logger = structlog.get_logger(__name__)


class LedgerPoster:
    """
    Posts journal entries through the chart of accounts.

    With `enforce_balance` on, an entry whose debits and credits differ
    by the tolerance or more is rejected before any balance moves.
    With it off, such entries are accepted and still produce the correct
    per-account deltas.
    """

    def __init__(
        self,
        chart: ChartOfAccounts,
        entries: Optional[Iterable[JournalEntry]] = None,
        enforce_balance: bool = True,
        tolerance: Decimal = Decimal("0.01"),
    ):
        self._chart = chart
        self._entries: list[JournalEntry] = list(entries or [])
        self.enforce_balance = enforce_balance
        self.tolerance = tolerance

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[JournalEntry]:
        """Entries in posting order."""
        return list(self._entries)

    def history(self) -> list[JournalEntry]:
        """Entries most-recent-first, for display."""
        return list(reversed(self._entries))

    def get(self, entry_id: str) -> Optional[JournalEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def check_entry(self, entry: JournalEntry) -> None:
        """
        Raise if the entry may not be posted.

        Raises:
            UnbalancedEntryError: debits != credits while balance is enforced
        """
        if self.enforce_balance and not entry.is_balanced(self.tolerance):
            raise UnbalancedEntryError(entry.id, entry.total_debit, entry.total_credit)

    def post_entry(self, entry: JournalEntry) -> None:
        """Apply every item of `entry` to its account, then log the entry."""
        self.check_entry(entry)

        for item in entry.items:
            self._chart.apply_item(item)
        self._entries.append(entry)

        logger.info(
            "entry_posted",
            entry_id=entry.id,
            source=entry.source.value,
            items=len(entry.items),
            total_debit=str(entry.total_debit),
        )

    def entries_between(
        self,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
    ) -> list[JournalEntry]:
        """Entries dated within [start, end], inclusive; open ends are unbounded."""
        return [
            entry for entry in self._entries
            if (start is None or entry.date >= start)
            and (end is None or entry.date <= end)
        ]
