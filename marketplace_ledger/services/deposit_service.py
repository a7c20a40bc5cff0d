"""
DepositService -- a client moves funds to a contractor, bounded by a cap.

Responsibility:
    Computes the caller's deposit cap from its outstanding unpaid jobs,
    resolves the amount to move, validates the target contractor, and
    performs the transfer in one transaction.

Architecture position:
    Ledger > Services.  Cap arithmetic lives in domain/deposit_policy.py;
    the outstanding total comes from ContractSelector; the transfer runs
    through TransferEngine.run_atomic.

Invariants enforced:
    - cap = floor(total_unpaid / cap_divisor), computed in the same
      transaction as the transfer.
    - The amount moved is min(requested, cap); no request moves the cap.
    - A zero amount is refused (DepositNotAllowedError), never a no-op.

Failure modes:
    - InvalidAmountError: requested amount <= 0.
    - DepositNotAllowedError: the cap is zero (no unpaid jobs).
    - InsufficientFundsError: caller balance below the resolved amount.
    - NotAContractorError: target missing or not a contractor.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_config.schema import DepositConfig
from marketplace_ledger.domain.deposit_policy import (
    compute_deposit_cap,
    resolve_deposit_amount,
)
from marketplace_ledger.domain.dtos import DepositResult
from marketplace_ledger.exceptions import (
    DepositNotAllowedError,
    InsufficientFundsError,
    NotAContractorError,
    ProfileNotFoundError,
)
from marketplace_ledger.logging_config import LogContext, get_logger
from marketplace_ledger.models.profile import Profile, ProfileRole
from marketplace_ledger.selectors.contract_selector import ContractSelector
from marketplace_ledger.services.transfer_service import TransferEngine, TransferService

logger = get_logger("services.deposit")


class DepositService:
    """Capped deposit workflow."""

    def __init__(self, transfer_engine: TransferEngine, config: DepositConfig | None = None):
        self._engine = transfer_engine
        self._config = config or DepositConfig()

    def deposit(
        self,
        caller_profile_id: int,
        target_contractor_id: int,
        amount: Decimal | None = None,
    ) -> DepositResult:
        """
        Deposit up to the caller's cap into a contractor's balance.

        Args:
            caller_profile_id: Paying client.
            target_contractor_id: Receiving contractor.
            amount: Requested amount, or None for the full cap.

        Returns:
            DepositResult with the amount actually deposited.
        """
        with LogContext.bind(profile_id=caller_profile_id, operation="deposit"):
            result = self._engine.run_atomic(
                lambda session: self._deposit_in_session(
                    session, caller_profile_id, target_contractor_id, amount
                ),
                label=f"deposit:{caller_profile_id}->{target_contractor_id}",
            )
            logger.info(
                "deposit_completed",
                extra={
                    "target_profile_id": result.target_profile_id,
                    "requested": amount,
                    "deposited": result.deposited,
                    "cap": result.cap,
                    "total_unpaid": result.total_unpaid,
                },
            )
            return result

    def _deposit_in_session(
        self,
        session: Session,
        caller_profile_id: int,
        target_contractor_id: int,
        requested: Decimal | None,
    ) -> DepositResult:
        caller = session.get(Profile, caller_profile_id, populate_existing=True)
        if caller is None:
            raise ProfileNotFoundError(caller_profile_id)

        # 1-2. Cap from outstanding unpaid jobs
        total_unpaid = ContractSelector(session).total_unpaid_for_client(caller_profile_id)
        cap = compute_deposit_cap(total_unpaid, self._config.cap_divisor)

        # 3. Amount policy and funds
        deposit_amount = resolve_deposit_amount(requested, cap)
        if deposit_amount <= 0:
            raise DepositNotAllowedError(caller_profile_id, total_unpaid, cap)
        if caller.balance < deposit_amount:
            raise InsufficientFundsError(caller.id, caller.balance, deposit_amount)

        # 4. Target must be a contractor
        target = session.get(Profile, target_contractor_id)
        if target is None or ProfileRole(target.role) != ProfileRole.CONTRACTOR:
            raise NotAContractorError(target_contractor_id)

        # 5. Move the money
        TransferService(session).transfer(caller.id, target.id, deposit_amount)

        return DepositResult(
            deposited=deposit_amount,
            cap=cap,
            total_unpaid=total_unpaid,
            target_profile_id=target.id,
        )
