"""Database model exports."""

from .ledger import TRANSACTION_TYPES, Project, Transaction

__all__ = ["Project", "Transaction", "TRANSACTION_TYPES"]
