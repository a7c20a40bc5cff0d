"""
Model-level tests for profiles, contracts and jobs.

Verifies:
- Profile.version increments on every balance update
- Database CHECK constraints (non-negative balance, positive price)
- Paid jobs are immutable at the ORM layer
- Contract visibility predicate
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError

from marketplace_ledger.exceptions import ImmutabilityViolationError
from marketplace_ledger.models import Contract, ContractStatus, Job, Profile, ProfileRole

PAID_AT = datetime(2020, 8, 15, 19, 11, 26, tzinfo=UTC)


class TestProfileModel:
    """Tests for Profile columns and versioning."""

    def test_defaults(self, session):
        profile = Profile(first_name="Ada", last_name="Lovelace", role=ProfileRole.CONTRACTOR)
        session.add(profile)
        session.flush()

        assert profile.balance == Decimal("0")
        assert profile.version == 1
        assert profile.profession is None
        assert profile.is_contractor
        assert profile.full_name == "Ada Lovelace"

    def test_version_increments_on_update(self, session, factory):
        profile_id = factory.client(balance="100")
        profile = session.get(Profile, profile_id)
        assert profile.version == 1

        profile.balance = Decimal("90")
        session.flush()
        assert profile.version == 2

        profile.balance = Decimal("80")
        session.flush()
        assert profile.version == 3

    def test_negative_balance_rejected_by_database(self, session, factory):
        profile_id = factory.client(balance="10")
        profile = session.get(Profile, profile_id)
        profile.balance = Decimal("-0.01")

        with pytest.raises(IntegrityError):
            session.flush()

    def test_balance_round_trips_as_decimal(self, factory):
        profile_id = factory.client(balance="231.11")
        balance = factory.balance(profile_id)
        assert isinstance(balance, Decimal)
        assert balance == Decimal("231.11")


class TestJobModel:
    """Tests for Job constraints and paid-job immutability."""

    @pytest.fixture
    def contract_id(self, factory):
        return factory.contract(factory.client(), factory.contractor())

    def test_non_positive_price_rejected(self, session, contract_id):
        session.add(Job(description="free work", price=Decimal("0"), contract_id=contract_id))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_unpaid_job_is_mutable(self, session, factory, contract_id):
        job_id = factory.job(contract_id, price="50")
        job = session.get(Job, job_id)
        job.price = Decimal("75")
        session.flush()
        assert job.price == Decimal("75")

    def test_paid_job_price_is_immutable(self, session, factory, contract_id):
        job_id = factory.paid_job(contract_id, price="50", payment_date=PAID_AT)
        job = session.get(Job, job_id)
        job.price = Decimal("1")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "Job"

    def test_paid_job_cannot_be_unpaid(self, session, factory, contract_id):
        job_id = factory.paid_job(contract_id, price="50", payment_date=PAID_AT)
        job = session.get(Job, job_id)
        job.paid = False

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_paid_job_cannot_be_deleted(self, session, factory, contract_id):
        job_id = factory.paid_job(contract_id, price="50", payment_date=PAID_AT)
        session.delete(session.get(Job, job_id))

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_marking_unpaid_job_paid_is_allowed(self, session, factory, contract_id):
        job_id = factory.job(contract_id, price="50")
        job = session.get(Job, job_id)
        job.paid = True
        job.payment_date = PAID_AT
        session.flush()
        assert job.paid is True


class TestContractVisibility:
    """Tests for Contract.visible_to."""

    def test_only_parties_see_contract(self, session, factory):
        client_id = factory.client()
        contractor_id = factory.contractor()
        outsider_id = factory.client()
        contract_id = factory.contract(client_id, contractor_id, status=ContractStatus.NEW)

        def visible(profile_id):
            stmt = select(Contract.id).where(Contract.visible_to(profile_id))
            return list(session.execute(stmt).scalars())

        assert visible(client_id) == [contract_id]
        assert visible(contractor_id) == [contract_id]
        assert visible(outsider_id) == []


class TestMapperShape:
    """Jobs, contracts and profiles are linked only by foreign keys."""

    @pytest.mark.parametrize("model", [Profile, Contract, Job])
    def test_no_relationships_mapped(self, model):
        assert list(inspect(model).relationships) == []

    def test_job_contract_foreign_key(self):
        (fk,) = Job.__table__.c.contract_id.foreign_keys
        assert fk.column.table.name == Contract.__tablename__
