"""
Data transfer objects returned by the ledger.

Responsibility:
    Frozen, ORM-free value objects.  Every public service and selector
    method returns these instead of live ORM rows, so callers never trigger
    lazy loads or mutate persistent state by accident.

Architecture position:
    Ledger > Domain -- pure, zero I/O.  The ``from_model`` constructors read
    already-loaded attributes only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from marketplace_ledger.models.contract import ContractStatus
from marketplace_ledger.models.profile import ProfileRole


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes loaded from backends without timezones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ProfileInfo:
    """Immutable view of a profile."""

    id: int
    first_name: str
    last_name: str
    profession: str | None
    balance: Decimal
    role: ProfileRole

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_contractor(self) -> bool:
        return self.role == ProfileRole.CONTRACTOR

    @classmethod
    def from_model(cls, profile) -> ProfileInfo:
        return cls(
            id=profile.id,
            first_name=profile.first_name,
            last_name=profile.last_name,
            profession=profile.profession,
            balance=profile.balance,
            role=ProfileRole(profile.role),
        )


@dataclass(frozen=True)
class ContractInfo:
    """Immutable view of a contract."""

    id: int
    terms: str
    status: ContractStatus
    client_id: int
    contractor_id: int

    @classmethod
    def from_model(cls, contract) -> ContractInfo:
        return cls(
            id=contract.id,
            terms=contract.terms,
            status=ContractStatus(contract.status),
            client_id=contract.client_id,
            contractor_id=contract.contractor_id,
        )


@dataclass(frozen=True)
class JobInfo:
    """Immutable view of a job."""

    id: int
    description: str
    price: Decimal
    paid: bool
    payment_date: datetime | None
    contract_id: int

    @classmethod
    def from_model(cls, job) -> JobInfo:
        return cls(
            id=job.id,
            description=job.description,
            price=job.price,
            paid=bool(job.paid),
            payment_date=as_utc(job.payment_date),
            contract_id=job.contract_id,
        )


@dataclass(frozen=True)
class TransferResult:
    """Outcome of one debit-credit pair, with post-transfer balances."""

    from_profile_id: int
    to_profile_id: int
    amount: Decimal
    from_balance: Decimal
    to_balance: Decimal


@dataclass(frozen=True)
class DepositResult:
    """Outcome of a deposit: what moved, and the cap it was bounded by."""

    deposited: Decimal
    cap: Decimal
    total_unpaid: Decimal
    target_profile_id: int


@dataclass(frozen=True)
class ProfessionEarnings:
    """One row of the profession ranking."""

    profession: str
    total_earned: Decimal


@dataclass(frozen=True)
class ClientPayments:
    """One row of the client ranking."""

    id: int
    full_name: str
    paid: Decimal
