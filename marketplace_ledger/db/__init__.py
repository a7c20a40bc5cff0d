"""Database layer - store handle, base classes, column types, immutability."""

from marketplace_ledger.db.base import Base, TrackedBase
from marketplace_ledger.db.engine import LedgerStore
from marketplace_ledger.db.types import Money, MoneyNumeric, money_from_str, round_money

__all__ = [
    "LedgerStore",
    "Base",
    "TrackedBase",
    "Money",
    "MoneyNumeric",
    "money_from_str",
    "round_money",
]
