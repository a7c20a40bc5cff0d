"""
Deposit cap policy -- pure arithmetic, no I/O.

A client may move at most a fraction of what it still owes on unpaid jobs:
``cap = floor(total_unpaid / cap_divisor)``, floored to whole currency
units so the cap never exceeds the true fraction.  With the default divisor
of 4 that is 25%: an outstanding 100 allows 25, an outstanding 0 allows
nothing.

The requested amount is honored up to the cap: ``min(requested, cap)``.
No request means "deposit the full cap".
"""

from decimal import ROUND_FLOOR, Decimal

from marketplace_ledger.db.types import round_money
from marketplace_ledger.exceptions import InvalidAmountError

DEFAULT_CAP_DIVISOR = 4


def compute_deposit_cap(
    total_unpaid: Decimal,
    cap_divisor: int = DEFAULT_CAP_DIVISOR,
) -> Decimal:
    """
    Maximum deposit for a client owing ``total_unpaid``.

    Preconditions: total_unpaid >= 0, cap_divisor >= 1.
    Postconditions: 0 <= cap <= total_unpaid / cap_divisor, cap is integral.
    """
    if cap_divisor < 1:
        raise ValueError(f"cap_divisor must be >= 1, got {cap_divisor}")
    if total_unpaid <= 0:
        return round_money(Decimal(0))
    cap = (Decimal(total_unpaid) / cap_divisor).to_integral_value(rounding=ROUND_FLOOR)
    return round_money(cap)


def resolve_deposit_amount(requested: Decimal | None, cap: Decimal) -> Decimal:
    """
    Amount that will actually move for a request against ``cap``.

    Raises:
        InvalidAmountError: requested is zero or negative once rounded to
            money scale.
    """
    if requested is None:
        return cap
    requested = round_money(Decimal(requested))
    if requested <= 0:
        raise InvalidAmountError(requested, "deposit amount must be positive")
    return min(requested, cap)
