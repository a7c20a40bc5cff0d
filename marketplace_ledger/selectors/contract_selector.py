"""
Module: marketplace_ledger.selectors.contract_selector
Responsibility: Contract and job queries scoped to what a profile may see.
    A contract, and every job under it, is visible only to the contract's
    client and contractor.
Architecture position: Ledger > Selectors.

Invariants enforced:
    - Visibility: every query filters by Contract.visible_to(caller_id).
      An invisible contract is indistinguishable from an absent one.
    - total_unpaid_for_client() counts only jobs with paid = false on
      contracts where the profile is the client.

Failure modes:
    - ContractNotFoundError from get_contract() for absent or invisible ids.
    - Empty lists (never errors) from the list queries.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace_ledger.db.types import round_money
from marketplace_ledger.domain.dtos import ContractInfo, JobInfo
from marketplace_ledger.exceptions import ContractNotFoundError
from marketplace_ledger.models.contract import Contract, ContractStatus
from marketplace_ledger.models.job import Job
from marketplace_ledger.selectors.base import BaseSelector


class ContractSelector(BaseSelector[Contract]):
    """
    Selector for contracts and their jobs.

    Non-goals:
        - Does NOT change contract status; lifecycle is managed elsewhere.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def get_contract(self, caller_id: int, contract_id: int) -> ContractInfo:
        """
        Contract ``contract_id`` if the caller is one of its parties.

        Raises:
            ContractNotFoundError: absent, or not visible to the caller.
        """
        stmt = select(Contract).where(
            Contract.id == contract_id,
            Contract.visible_to(caller_id),
        )
        contract = self.session.execute(stmt).scalar_one_or_none()
        if contract is None:
            raise ContractNotFoundError(contract_id, caller_id)
        return ContractInfo.from_model(contract)

    def list_contracts(
        self,
        caller_id: int,
        exclude_terminated: bool = False,
    ) -> list[ContractInfo]:
        """
        Contracts where the caller is client or contractor, ordered by id.

        Args:
            caller_id: Requesting profile.
            exclude_terminated: If True, skip terminated contracts.
        """
        stmt = select(Contract).where(Contract.visible_to(caller_id))
        if exclude_terminated:
            stmt = stmt.where(Contract.status != ContractStatus.TERMINATED.value)
        stmt = stmt.order_by(Contract.id)
        return [ContractInfo.from_model(c) for c in self.session.execute(stmt).scalars()]

    def list_unpaid_jobs(
        self,
        caller_id: int,
        active_only: bool = False,
    ) -> list[JobInfo]:
        """
        Unpaid jobs on contracts visible to the caller, ordered by id.

        Args:
            caller_id: Requesting profile.
            active_only: If True, only jobs on in-progress contracts.
        """
        stmt = (
            select(Job)
            .join(Contract, Job.contract_id == Contract.id)
            .where(
                Job.paid.is_(False),
                Contract.visible_to(caller_id),
            )
        )
        if active_only:
            stmt = stmt.where(Contract.status == ContractStatus.IN_PROGRESS.value)
        stmt = stmt.order_by(Job.id)
        return [JobInfo.from_model(j) for j in self.session.execute(stmt).scalars()]

    def total_unpaid_for_client(self, client_id: int) -> Decimal:
        """Sum of prices of unpaid jobs the profile owes as client (0 if none)."""
        stmt = (
            select(func.coalesce(func.sum(Job.price), 0))
            .select_from(Job)
            .join(Contract, Job.contract_id == Contract.id)
            .where(
                Job.paid.is_(False),
                Contract.client_id == client_id,
            )
        )
        total = self.session.execute(stmt).scalar_one()
        return round_money(Decimal(str(total)))
