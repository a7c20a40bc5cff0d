"""
Tests for TransferService and TransferEngine.

Verifies:
- Value conservation across transfers
- InsufficientFundsError raised iff balance < amount
- Invalid amounts and unknown profiles are rejected without side effects
- Contention is retried; domain errors are not
"""

from decimal import Decimal

import pytest
from sqlalchemy import event, update
from sqlalchemy.orm.exc import StaleDataError

from ledger_config.schema import TransferConfig
from marketplace_ledger.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    OptimisticLockError,
    ProfileNotFoundError,
)
from marketplace_ledger.models import Profile
from marketplace_ledger.services.transfer_service import (
    TransferEngine,
    TransferService,
    is_contention_error,
)


class TestTransfer:
    """Tests for a single debit-credit pair."""

    def test_moves_amount_and_conserves_total(self, factory, transfer_engine):
        source = factory.client(balance="100")
        target = factory.contractor(balance="5")
        total_before = factory.total_balance()

        result = transfer_engine.transfer(source, target, Decimal("40"))

        assert result.amount == Decimal("40.00")
        assert result.from_balance == Decimal("60.00")
        assert result.to_balance == Decimal("45.00")
        assert factory.balance(source) == Decimal("60.00")
        assert factory.balance(target) == Decimal("45.00")
        assert factory.total_balance() == total_before

    def test_exact_balance_can_be_transferred(self, factory, transfer_engine):
        source = factory.client(balance="25.50")
        target = factory.contractor()

        transfer_engine.transfer(source, target, Decimal("25.50"))

        assert factory.balance(source) == Decimal("0.00")
        assert factory.balance(target) == Decimal("25.50")

    def test_insufficient_funds(self, factory, transfer_engine):
        source = factory.client(balance="10")
        target = factory.contractor()

        with pytest.raises(InsufficientFundsError) as exc_info:
            transfer_engine.transfer(source, target, Decimal("10.01"))

        assert exc_info.value.profile_id == source
        assert exc_info.value.required == Decimal("10.01")
        assert factory.balance(source) == Decimal("10.00")
        assert factory.balance(target) == Decimal("0.00")

    @pytest.mark.parametrize("amount", ["0", "-1"])
    def test_non_positive_amount_rejected(self, factory, transfer_engine, amount):
        source = factory.client(balance="10")
        target = factory.contractor()

        with pytest.raises(InvalidAmountError):
            transfer_engine.transfer(source, target, Decimal(amount))

    def test_self_transfer_rejected(self, factory, transfer_engine):
        source = factory.client(balance="10")

        with pytest.raises(InvalidAmountError):
            transfer_engine.transfer(source, source, Decimal("1"))
        assert factory.balance(source) == Decimal("10.00")

    def test_unknown_target(self, factory, transfer_engine):
        source = factory.client(balance="10")

        with pytest.raises(ProfileNotFoundError) as exc_info:
            transfer_engine.transfer(source, 999_999, Decimal("1"))
        assert exc_info.value.profile_id == 999_999
        assert factory.balance(source) == Decimal("10.00")

    def test_unknown_source(self, factory, transfer_engine):
        target = factory.contractor()

        with pytest.raises(ProfileNotFoundError):
            transfer_engine.transfer(999_999, target, Decimal("1"))

    def test_lock_profiles_orders_by_id(self, session, factory):
        first = factory.client()
        second = factory.contractor()

        locked = TransferService(session).lock_profiles(second, first)

        assert list(locked) == [first, second]

    def test_completed_transfer_is_logged(self, factory, transfer_engine, captured_logs):
        source = factory.client(balance="10")
        target = factory.contractor()

        transfer_engine.transfer(source, target, Decimal("3"))

        records = [r for r in captured_logs() if r["message"] == "transfer_completed"]
        assert len(records) == 1
        assert records[0]["from_profile_id"] == source
        assert records[0]["amount"] == "3.00"


class TestTransferEngineRetry:
    """Tests for the retrying unit of work."""

    def test_stale_balance_is_retried(self, store, factory, transfer_engine, captured_logs):
        if store.is_postgres:
            pytest.skip("competing write would block on the row lock")
        source = factory.client(balance="100")
        target = factory.contractor()
        attempts = []

        def work(session):
            attempts.append(1)
            if len(attempts) == 1:
                # A competing transaction commits between our read and our write
                @event.listens_for(session, "before_flush", once=True)
                def _competing_write(sess, flush_context, instances):
                    with store.engine.begin() as conn:
                        conn.execute(
                            update(Profile)
                            .where(Profile.id == source)
                            .values(balance=Decimal("90"), version=Profile.version + 1)
                        )

            return TransferService(session).transfer(source, target, Decimal("10"))

        result = transfer_engine.run_atomic(work, label="stale-test")

        assert len(attempts) == 2
        assert result.from_balance == Decimal("80.00")
        assert factory.balance(source) == Decimal("80.00")
        assert factory.balance(target) == Decimal("10.00")
        assert any(r["message"] == "transfer_retry" for r in captured_logs())

    def test_retries_exhausted(self, store):
        calls = []
        engine = TransferEngine(
            store, TransferConfig(max_attempts=3, retry_backoff_seconds=0), sleep=lambda _: None
        )

        def work(session):
            calls.append(1)
            raise StaleDataError("row changed")

        with pytest.raises(OptimisticLockError) as exc_info:
            engine.run_atomic(work, label="always-stale")

        assert len(calls) == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.code == "OPTIMISTIC_LOCK_CONFLICT"

    def test_single_attempt_budget(self, store):
        sleeps = []
        engine = TransferEngine(
            store, TransferConfig(max_attempts=1, retry_backoff_seconds=0.5), sleep=sleeps.append
        )

        def work(session):
            raise StaleDataError("row changed")

        with pytest.raises(OptimisticLockError) as exc_info:
            engine.run_atomic(work)
        assert exc_info.value.attempts == 1
        assert sleeps == []

    def test_backoff_grows_linearly(self, store):
        sleeps = []
        engine = TransferEngine(
            store, TransferConfig(max_attempts=3, retry_backoff_seconds=0.5), sleep=sleeps.append
        )

        def work(session):
            raise StaleDataError("row changed")

        with pytest.raises(OptimisticLockError):
            engine.run_atomic(work)
        assert sleeps == [0.5, 1.0]

    def test_domain_errors_are_not_retried(self, factory, store):
        calls = []
        engine = TransferEngine(store, sleep=lambda _: None)
        source = factory.client(balance="1")
        target = factory.contractor()

        def work(session):
            calls.append(1)
            return TransferService(session).transfer(source, target, Decimal("5"))

        with pytest.raises(InsufficientFundsError):
            engine.run_atomic(work)
        assert len(calls) == 1

    def test_failed_unit_rolls_back_every_write(self, factory, transfer_engine):
        source = factory.client(balance="100")
        target = factory.contractor()

        def work(session):
            TransferService(session).transfer(source, target, Decimal("10"))
            raise RuntimeError("later step failed")

        with pytest.raises(RuntimeError):
            transfer_engine.run_atomic(work)
        assert factory.balance(source) == Decimal("100.00")
        assert factory.balance(target) == Decimal("0.00")


class TestIsContentionError:
    """Tests for the contention classifier."""

    def test_stale_data(self):
        assert is_contention_error(StaleDataError("x"))

    def test_optimistic_lock(self):
        assert is_contention_error(OptimisticLockError("Profile", "1"))

    def test_domain_error_is_not_contention(self):
        assert not is_contention_error(InsufficientFundsError(1, Decimal("0"), Decimal("1")))

    def test_plain_exception(self):
        assert not is_contention_error(ValueError("x"))
