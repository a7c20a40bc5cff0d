"""
PaymentService -- a client pays one of its jobs.

Responsibility:
    Validates that a job is payable by the caller, moves the job price from
    the client to the contract's contractor, and marks the job paid, all in
    one transaction.

Architecture position:
    Ledger > Services.  Runs through ``TransferEngine.run_atomic`` so the
    two balance updates and the job update commit or roll back together.

Invariants enforced:
    - Only the contract's client can pay, and only while ``paid = false``.
    - Exactly-once payment: the job is flipped by
      ``UPDATE jobs SET paid = true ... WHERE id = :id AND paid = false``.
      When two payments race, the loser's UPDATE matches zero rows and its
      transfer is rolled back with the rest of the unit.
    - payment_date comes from the injected Clock.

Failure modes:
    - JobNotPayableError: absent job, wrong caller, already paid, or lost
      the race.
    - InsufficientFundsError: job price exceeds the caller's balance.
    - IntegrityViolationError: the caller or the contract's contractor row
      is missing (logged at ERROR; should not happen with valid data).
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from marketplace_ledger.domain.clock import Clock, SystemClock
from marketplace_ledger.domain.dtos import JobInfo
from marketplace_ledger.exceptions import (
    InsufficientFundsError,
    IntegrityViolationError,
    JobNotPayableError,
)
from marketplace_ledger.logging_config import LogContext, get_logger
from marketplace_ledger.models.contract import Contract
from marketplace_ledger.models.job import Job
from marketplace_ledger.models.profile import Profile
from marketplace_ledger.services.transfer_service import TransferEngine, TransferService

logger = get_logger("services.payment")


class PaymentService:
    """
    Job payment workflow.

    Contract:
        ``pay_job(caller_profile_id, job_id)`` returns the paid job or
        raises; on any raise no balance or job has changed.
    """

    def __init__(self, transfer_engine: TransferEngine, clock: Clock | None = None):
        self._engine = transfer_engine
        self._clock = clock or SystemClock()

    def pay_job(self, caller_profile_id: int, job_id: int) -> JobInfo:
        """
        Pay ``job_id`` on behalf of ``caller_profile_id``.

        Returns:
            The updated job (paid=True, payment_date set).

        Raises:
            JobNotPayableError, InsufficientFundsError, IntegrityViolationError.
        """
        with LogContext.bind(profile_id=caller_profile_id, job_id=job_id, operation="pay_job"):
            job = self._engine.run_atomic(
                lambda session: self._pay_in_session(session, caller_profile_id, job_id),
                label=f"pay_job:{job_id}",
            )
            logger.info(
                "job_paid",
                extra={
                    "job_id": job.id,
                    "contract_id": job.contract_id,
                    "price": job.price,
                    "payment_date": job.payment_date,
                },
            )
            return job

    def _pay_in_session(self, session: Session, caller_profile_id: int, job_id: int) -> JobInfo:
        # 1. Payable job owned by the caller (row-locked where supported)
        stmt = (
            select(Job, Contract.contractor_id)
            .join(Contract, Job.contract_id == Contract.id)
            .where(
                Job.id == job_id,
                Job.paid.is_(False),
                Contract.client_id == caller_profile_id,
            )
            .with_for_update(of=Job)
            .execution_options(populate_existing=True)
        )
        row = session.execute(stmt).one_or_none()
        if row is None:
            raise JobNotPayableError(job_id, caller_profile_id)
        job, contractor_id = row

        # 2. Funds
        caller = session.get(Profile, caller_profile_id, populate_existing=True)
        if caller is None:
            logger.error(
                "integrity_violation_detected",
                extra={"entity_type": "Profile", "entity_id": caller_profile_id, "job_id": job_id},
            )
            raise IntegrityViolationError("Profile", caller_profile_id, f"Contract {job.contract_id}")
        if job.price > caller.balance:
            raise InsufficientFundsError(caller.id, caller.balance, job.price)

        # 3. Contractor must exist
        contractor = session.get(Profile, contractor_id)
        if contractor is None:
            logger.error(
                "integrity_violation_detected",
                extra={"entity_type": "Profile", "entity_id": contractor_id, "job_id": job_id},
            )
            raise IntegrityViolationError("Profile", contractor_id, f"Contract {job.contract_id}")

        # 4. Move the money
        TransferService(session).transfer(caller.id, contractor.id, job.price)

        # 5. Mark paid, exactly once
        result = session.execute(
            update(Job)
            .where(Job.id == job_id, Job.paid.is_(False))
            .values(paid=True, payment_date=self._clock.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise JobNotPayableError(job_id, caller_profile_id)

        session.refresh(job)
        return JobInfo.from_model(job)
