"""
Module: marketplace_ledger.selectors.aggregation_selector
Responsibility: Time-windowed rankings over paid jobs: which profession
    earned the most, and which clients paid the most.
Architecture position: Ledger > Selectors.  Reads jobs, contracts and
    profiles directly; never goes through the Transfer Engine.

Invariants enforced:
    - Only jobs with paid = true and payment_date inside the inclusive
      window [start, end] are summed, for BOTH rankings.
    - Rankings are deterministic: ties on the summed amount are broken by
      profession name (professions) or profile id (clients).
    - Rows come back as typed DTOs built from the grouped SQL result.

Failure modes:
    - InvalidDateRangeError if start > end.
    - InvalidLimitError if limit < 1.
    - best_profession() returns None when no paid job falls in the window.

Audit relevance:
    Queries take no locks.  Paid jobs are immutable, so a window whose end
    is in the past always yields the same ranking.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace_ledger.domain.dtos import ClientPayments, ProfessionEarnings
from marketplace_ledger.exceptions import InvalidDateRangeError, InvalidLimitError
from marketplace_ledger.models.contract import Contract
from marketplace_ledger.models.job import Job
from marketplace_ledger.models.profile import Profile
from marketplace_ledger.selectors.base import BaseSelector

DEFAULT_BEST_CLIENTS_LIMIT = 2


def window_bound(value: date | datetime, *, end: bool) -> datetime:
    """
    Normalize a window bound to an aware UTC datetime.

    A bare ``date`` covers the whole day: midnight for ``start``, the last
    microsecond of the day for ``end``.  Naive datetimes are read as UTC.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.max if end else time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AggregationSelector(BaseSelector[Job]):
    """
    Selector for earnings rankings.

    Contract:
        Both rankings sum Job.price over paid jobs in [start, end] and group
        through the job's contract: by the contractor's profession, or by
        the client.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _window(self, start: date | datetime, end: date | datetime) -> tuple[datetime, datetime]:
        lo = window_bound(start, end=False)
        hi = window_bound(end, end=True)
        if lo > hi:
            raise InvalidDateRangeError(lo, hi)
        return lo, hi

    def profession_earnings(
        self,
        start: date | datetime,
        end: date | datetime,
    ) -> list[ProfessionEarnings]:
        """
        Total earned per profession in the window, best first.

        Contractors without a profession are not ranked.
        """
        lo, hi = self._window(start, end)
        total = func.sum(Job.price).label("total_earned")
        stmt = (
            select(Profile.profession, total)
            .select_from(Job)
            .join(Contract, Job.contract_id == Contract.id)
            .join(Profile, Contract.contractor_id == Profile.id)
            .where(
                Job.paid.is_(True),
                Job.payment_date.between(lo, hi),
                Profile.profession.is_not(None),
            )
            .group_by(Profile.profession)
            .order_by(total.desc(), Profile.profession)
        )
        return [
            ProfessionEarnings(profession=row.profession, total_earned=row.total_earned)
            for row in self.session.execute(stmt)
        ]

    def best_profession(
        self,
        start: date | datetime,
        end: date | datetime,
    ) -> str | None:
        """Profession with the highest earnings in the window, or None."""
        ranking = self.profession_earnings(start, end)
        return ranking[0].profession if ranking else None

    def best_clients(
        self,
        start: date | datetime,
        end: date | datetime,
        limit: int = DEFAULT_BEST_CLIENTS_LIMIT,
    ) -> list[ClientPayments]:
        """
        Clients who paid the most in the window, best first, at most ``limit``.

        Raises:
            InvalidDateRangeError, InvalidLimitError.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidLimitError(limit)
        lo, hi = self._window(start, end)
        amount_paid = func.sum(Job.price).label("amount_paid")
        stmt = (
            select(Profile.id, Profile.first_name, Profile.last_name, amount_paid)
            .select_from(Job)
            .join(Contract, Job.contract_id == Contract.id)
            .join(Profile, Contract.client_id == Profile.id)
            .where(
                Job.paid.is_(True),
                Job.payment_date.between(lo, hi),
            )
            .group_by(Profile.id, Profile.first_name, Profile.last_name)
            .order_by(amount_paid.desc(), Profile.id)
            .limit(limit)
        )
        return [
            ClientPayments(
                id=row.id,
                full_name=f"{row.first_name} {row.last_name}",
                paid=row.amount_paid,
            )
            for row in self.session.execute(stmt)
        ]
