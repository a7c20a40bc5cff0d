"""
Module: marketplace_ledger.models.contract
Responsibility: ORM persistence for the agreement between one client and one
    contractor.  Jobs hang off a contract; a contract is visible to exactly
    the two profiles it links.
Architecture position: Ledger > Models.  May import from db/ only.

Invariants enforced:
    - client_id and contractor_id always reference existing profiles
      (foreign keys).
    - Visibility: a contract is visible to profile P iff P is its client or
      its contractor (see visible_to()).

Non-goals:
    - Status transitions (new -> in_progress -> terminated) are managed
      outside the ledger.
"""

from enum import Enum

from sqlalchemy import ForeignKey, Index, String, or_
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_ledger.db.base import IdentityInteger, TrackedBase
from marketplace_ledger.db.types import LongText


class ContractStatus(str, Enum):
    """Contract lifecycle status."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    TERMINATED = "terminated"


class Contract(TrackedBase):
    """
    Agreement between a client and a contractor.

    Guarantees:
        - Exactly one client and one contractor.
        - Jobs and parties are joined by foreign key in queries; there are
          no ORM relationships to traverse.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        Index("idx_contract_client", "client_id"),
        Index("idx_contract_contractor", "contractor_id"),
        Index("idx_contract_status", "status"),
    )

    terms: Mapped[LongText] = mapped_column(nullable=False)

    status: Mapped[ContractStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ContractStatus.NEW,
    )

    client_id: Mapped[int] = mapped_column(
        IdentityInteger,
        ForeignKey("profiles.id"),
        nullable=False,
    )

    contractor_id: Mapped[int] = mapped_column(
        IdentityInteger,
        ForeignKey("profiles.id"),
        nullable=False,
    )

    @classmethod
    def visible_to(cls, profile_id: int):
        """SQL predicate: the contract belongs to ``profile_id`` on either side."""
        return or_(cls.client_id == profile_id, cls.contractor_id == profile_id)

    def __repr__(self) -> str:
        return f"<Contract {self.id}: client={self.client_id} contractor={self.contractor_id}>"
