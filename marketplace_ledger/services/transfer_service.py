"""
TransferService / TransferEngine -- atomic movement of funds between profiles.

Responsibility:
    TransferService performs one debit-credit pair inside the caller's
    transaction.  TransferEngine owns the unit of work around it: it opens
    the transaction, commits it, and retries the whole unit when a
    concurrent transaction touched the same balances.

Architecture position:
    Ledger > Services.  PaymentService and DepositService run their entire
    workflow through ``TransferEngine.run_atomic()`` so their extra reads
    and writes commit together with the transfer.

Invariants enforced:
    - Value conservation: the source is debited and the target credited by
      the identical amount in the same flush.
    - No overdraft: the source balance is checked against the amount after
      the row lock is taken, never against a stale read.
    - Lock ordering: both profile rows are locked in ascending id order,
      so two transfers in opposite directions cannot deadlock.
    - Lost-update protection: Profile.version (version_id_col) turns an
      interleaved balance update into StaleDataError on backends that
      ignore ``FOR UPDATE``.

Failure modes:
    - InvalidAmountError: amount <= 0, or source == target.
    - ProfileNotFoundError: either id does not resolve.
    - InsufficientFundsError: source balance < amount.
    - OptimisticLockError: contention persisted for ``max_attempts`` units.

Audit relevance:
    Every completed transfer logs ``transfer_completed`` with both ids, the
    amount and both resulting balances.  Every contention retry logs
    ``transfer_retry``.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ledger_config.schema import TransferConfig
from marketplace_ledger.db.engine import LedgerStore
from marketplace_ledger.db.types import round_money
from marketplace_ledger.domain.dtos import TransferResult
from marketplace_ledger.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    OptimisticLockError,
    ProfileNotFoundError,
)
from marketplace_ledger.logging_config import get_logger
from marketplace_ledger.models.profile import Profile
from marketplace_ledger.services.base import BaseService

logger = get_logger("services.transfer")

T = TypeVar("T")

# Driver messages that mean "another transaction got there first; try again"
_RETRYABLE_DB_MESSAGES = (
    "deadlock detected",
    "could not serialize access",
    "database is locked",
)


def is_contention_error(exc: BaseException) -> bool:
    """True when ``exc`` signals write contention rather than a real failure."""
    if isinstance(exc, (StaleDataError, OptimisticLockError)):
        return True
    if isinstance(exc, DBAPIError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        return any(m in message for m in _RETRYABLE_DB_MESSAGES)
    return False


class TransferService(BaseService[Profile]):
    """
    Debit-credit pair within the caller's transaction.

    Contract:
        ``transfer()`` locks both profiles, validates, mutates both balances
        and flushes.  The caller commits.

    Non-goals:
        - Does NOT commit or retry (see TransferEngine).
    """

    def lock_profiles(self, *profile_ids: int) -> dict[int, Profile]:
        """
        Load and row-lock profiles in ascending id order.

        ``populate_existing`` refreshes rows already in the identity map, so
        the balances returned are the ones the lock protects.

        Returns:
            Mapping of id -> Profile for the ids that exist.
        """
        stmt = (
            select(Profile)
            .where(Profile.id.in_(sorted(set(profile_ids))))
            .order_by(Profile.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {p.id: p for p in self.session.execute(stmt).scalars()}

    def transfer(
        self,
        from_profile_id: int,
        to_profile_id: int,
        amount: Decimal,
    ) -> TransferResult:
        """
        Move ``amount`` from one profile balance to another.

        Preconditions:
            - amount > 0.
            - from_profile_id != to_profile_id.
        Postconditions:
            - from.balance decreased and to.balance increased by amount,
              flushed in the current transaction.

        Raises:
            InvalidAmountError, ProfileNotFoundError, InsufficientFundsError.
        """
        amount = round_money(Decimal(amount))
        if amount <= 0:
            raise InvalidAmountError(amount, "transfer amount must be positive")
        if from_profile_id == to_profile_id:
            raise InvalidAmountError(amount, "source and target profiles are the same")

        profiles = self.lock_profiles(from_profile_id, to_profile_id)
        source = profiles.get(from_profile_id)
        if source is None:
            raise ProfileNotFoundError(from_profile_id)
        target = profiles.get(to_profile_id)
        if target is None:
            raise ProfileNotFoundError(to_profile_id)

        # INVARIANT: no overdraft -- checked against the locked row
        if source.balance < amount:
            raise InsufficientFundsError(source.id, source.balance, amount)

        source.balance = source.balance - amount
        target.balance = target.balance + amount
        self.session.flush()

        logger.info(
            "transfer_completed",
            extra={
                "from_profile_id": source.id,
                "to_profile_id": target.id,
                "amount": amount,
                "from_balance": source.balance,
                "to_balance": target.balance,
            },
        )
        return TransferResult(
            from_profile_id=source.id,
            to_profile_id=target.id,
            amount=amount,
            from_balance=source.balance,
            to_balance=target.balance,
        )


class TransferEngine:
    """
    Retrying unit of work around transfers.

    Contract:
        ``run_atomic(work)`` calls ``work(session)`` inside one transaction
        and commits it.  If the unit fails because of write contention, the
        transaction is rolled back and the whole unit runs again from
        scratch, up to ``config.max_attempts`` times.

    Guarantees:
        - Either every write made by ``work`` commits, or none does.
        - Domain errors (insufficient funds, not payable, ...) are raised on
          the first attempt and never retried.
        - Exhausted retries raise OptimisticLockError.
    """

    def __init__(
        self,
        store: LedgerStore,
        config: TransferConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._store = store
        self._config = config or TransferConfig()
        self._sleep = sleep

    @property
    def store(self) -> LedgerStore:
        return self._store

    def run_atomic(self, work: Callable[[Session], T], label: str = "transfer") -> T:
        """
        Run ``work`` in a single committed transaction, retrying on contention.

        Args:
            work: Callable receiving the open Session.  It must be safe to
                call again after a rollback (no side effects outside the
                session).
            label: Unit name for logs and the OptimisticLockError.

        Returns:
            Whatever ``work`` returns from the committed attempt.
        """
        max_attempts = self._config.max_attempts
        attempt = 1
        while True:
            try:
                with self._store.session_scope() as session:
                    return work(session)
            except Exception as exc:
                if not is_contention_error(exc):
                    raise
                if attempt >= max_attempts:
                    logger.error(
                        "transfer_retries_exhausted",
                        extra={"unit": label, "attempts": attempt},
                    )
                    raise OptimisticLockError("Profile", label, attempt) from exc
                logger.warning(
                    "transfer_retry",
                    extra={
                        "unit": label,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "cause": type(exc).__name__,
                    },
                )
                self._sleep(self._config.retry_backoff_seconds * attempt)
                attempt += 1

    def transfer(
        self,
        from_profile_id: int,
        to_profile_id: int,
        amount: Decimal,
    ) -> TransferResult:
        """Standalone transfer in its own retried transaction."""
        return self.run_atomic(
            lambda session: TransferService(session).transfer(
                from_profile_id, to_profile_id, amount
            ),
            label=f"transfer:{from_profile_id}->{to_profile_id}",
        )
