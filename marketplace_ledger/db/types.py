"""
Module: marketplace_ledger.db.types
Responsibility: Column types and money helpers shared by every model.
Architecture position: Ledger > DB.  Imports only from SQLAlchemy and the
    standard library.

Invariants enforced:
    - Monetary amounts are Decimal with MONEY_SCALE fractional digits on the
      way in and on the way out, whatever the backend.
    - round_money() is the ONLY sanctioned rounding function for monetary
      values in the ledger.

Failure modes:
    - decimal.InvalidOperation from money_from_str() on non-numeric input.
    - TypeError from MoneyNumeric when bound to a float.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric, String
from sqlalchemy.orm import mapped_column
from sqlalchemy.types import TypeDecorator

MONEY_PRECISION = 12
MONEY_SCALE = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)


def money_from_str(value: str) -> Decimal:
    """
    Create a monetary Decimal from its string representation.

    Preconditions: value is a numeric string ("100", "12.50").
    Postconditions: Returns the value quantized to MONEY_SCALE places.
    """
    return round_money(Decimal(value))


def round_money(value: Decimal, rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """
    Round a monetary value to MONEY_SCALE decimal places.

    Args:
        value: The Decimal value to round.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    return value.quantize(_MONEY_QUANTUM, rounding=rounding)


class MoneyNumeric(TypeDecorator):
    """
    Fixed-point money column.

    Contract:
        Stores Decimal amounts as NUMERIC(precision, scale).  Backends
        without a native decimal type (SQLite) hand back floats, so every
        loaded value is rebuilt from its string form and quantized.

    Guarantees:
        - process_bind_param rejects floats and quantizes Decimals.
        - process_result_value always returns a quantized Decimal or None.
        - cache_ok=True enables SQLAlchemy statement caching.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(
                Numeric(self.impl.precision, self.impl.scale, asdecimal=False)
            )
        return dialect.type_descriptor(self.impl)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, float):
            raise TypeError("Monetary amounts must be Decimal, not float")
        return round_money(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return round_money(Decimal(str(value)))


# Monetary amount column annotation
Money = Annotated[Decimal, mapped_column(MoneyNumeric(MONEY_PRECISION, MONEY_SCALE))]

# Person names and profession labels
ShortText = Annotated[str, mapped_column(String(100))]

# Contract terms and job descriptions
LongText = Annotated[str, mapped_column(String(4000))]
