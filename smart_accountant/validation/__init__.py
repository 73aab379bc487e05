"""Transaction validation package."""

from smart_accountant.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
