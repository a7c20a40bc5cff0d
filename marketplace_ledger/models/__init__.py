"""ORM models for the marketplace ledger."""

from marketplace_ledger.models.contract import Contract, ContractStatus
from marketplace_ledger.models.job import Job
from marketplace_ledger.models.profile import Profile, ProfileRole

__all__ = [
    "Contract",
    "ContractStatus",
    "Job",
    "Profile",
    "ProfileRole",
]
