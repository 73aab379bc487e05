"""
Chart of Accounts

Owns the accounts and the debit/credit normal-balance rule.

The only way an account balance changes is `apply_delta`, called by the
ledger poster for each journal item. A balance is therefore always the
opening balance plus the signed sum of every posted item on the account.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from smart_accountant.models.ledger import (
    Account,
    AccountType,
    JournalItem,
    NormalSide,
)


logger = structlog.get_logger(__name__)


# Seed chart: (id, code, name, type). Codes starting 11/12 are current
# assets, 13 fixed assets.
DEFAULT_CHART: list[tuple[str, str, str, AccountType]] = [
    ("1", "1101", "Cash", AccountType.ASSET),
    ("2", "1102", "Bank", AccountType.ASSET),
    ("3", "1201", "Inventory", AccountType.ASSET),
    ("4", "1202", "Accounts Receivable", AccountType.ASSET),
    ("5", "1301", "Furniture & Equipment", AccountType.ASSET),
    ("6", "2101", "Accounts Payable", AccountType.LIABILITY),
    ("7", "3101", "Owner's Capital", AccountType.EQUITY),
    ("8", "4101", "Sales Revenue", AccountType.INCOME),
    ("9", "4102", "Other Income", AccountType.INCOME),
    ("10", "5101", "Salaries", AccountType.EXPENSE),
    ("11", "5102", "Rent", AccountType.EXPENSE),
    ("12", "5103", "Utilities", AccountType.EXPENSE),
    ("13", "5201", "Purchases Discounts", AccountType.EXPENSE),
    ("14", "5202", "Cost of Goods Sold", AccountType.EXPENSE),
]


def default_chart() -> list[Account]:
    """Build a fresh copy of the seed chart with zero balances."""
    return [
        Account(id=account_id, code=code, name=name, type=account_type)
        for account_id, code, name, account_type in DEFAULT_CHART
    ]


def normal_side(account_type: AccountType) -> NormalSide:
    """Debit for assets and expenses, credit for everything else."""
    if account_type in (AccountType.ASSET, AccountType.EXPENSE):
        return NormalSide.DEBIT
    return NormalSide.CREDIT


def signed_amount(item: JournalItem, side: NormalSide) -> Decimal:
    """Contribution of one journal item to a balance kept on `side`."""
    if side == NormalSide.DEBIT:
        return item.debit - item.credit
    return item.credit - item.debit


class ChartOfAccounts:
    """
    The set of accounts, keyed by id, in chart order.

    Accounts are created once from a seed chart and never deleted.
    """

    def __init__(self, accounts: Optional[Iterable[Account]] = None):
        self._accounts: dict[str, Account] = {}
        for account in (default_chart() if accounts is None else accounts):
            if account.id in self._accounts:
                raise ValueError(f"Duplicate account id: {account.id}")
            self._accounts[account.id] = account

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: str) -> bool:
        return account_id in self._accounts

    def __iter__(self):
        return iter(self._accounts.values())

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts.values())

    def get(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def get_by_code(self, code: str) -> Optional[Account]:
        for account in self._accounts.values():
            if account.code == code:
                return account
        return None

    def by_type(self, account_type: AccountType) -> list[Account]:
        return [a for a in self._accounts.values() if a.type == account_type]

    def clearing_accounts(self) -> list[Account]:
        """Cash and bank accounts a payment can be settled through."""
        return [
            a for a in self._accounts.values()
            if a.type == AccountType.ASSET and a.code.startswith("11")
        ]

    def search(self, term: str) -> list[Account]:
        """Accounts whose name, code or type contains `term` (case-insensitive)."""
        term = term.strip().lower()
        if not term:
            return self.accounts
        return [
            a for a in self._accounts.values()
            if term in a.name.lower() or term in a.code or term in a.type.value
        ]

    def apply_delta(self, account: Account, item: JournalItem) -> Decimal:
        """
        Apply one journal item to `account` and return the new balance.

        Debit-normal accounts grow with debits, credit-normal with credits.
        """
        account.balance += signed_amount(item, normal_side(account.type))
        return account.balance

    def apply_item(self, item: JournalItem) -> Optional[Decimal]:
        """
        Resolve the item's account and apply it.

        Items on unknown accounts are ignored for balance purposes.
        """
        account = self._accounts.get(item.account_id)
        if account is None:
            logger.warning("unknown_account_in_entry", account_id=item.account_id)
            return None
        return self.apply_delta(account, item)
