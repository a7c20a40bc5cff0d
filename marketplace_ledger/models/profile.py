"""
Module: marketplace_ledger.models.profile
Responsibility: ORM persistence for marketplace participants.  A Profile is
    either a client (hires and pays) or a contractor (works and earns), and
    carries the balance that the Transfer Engine moves funds between.
Architecture position: Ledger > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - balance >= 0 (ck_profile_balance_non_negative).
    - version is SQLAlchemy's version_id_col: every UPDATE is issued as
      ``UPDATE ... WHERE id = :id AND version = :loaded_version`` so a
      concurrent balance change surfaces as StaleDataError instead of a
      lost update.
    - balance is mutated ONLY by TransferService.

Failure modes:
    - IntegrityError when a flush would drive balance below zero.
    - StaleDataError when the row changed since it was loaded.
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_ledger.db.base import TrackedBase
from marketplace_ledger.db.types import Money, ShortText


class ProfileRole(str, Enum):
    """Marketplace role of a profile."""

    CLIENT = "client"
    CONTRACTOR = "contractor"


class Profile(TrackedBase):
    """
    Marketplace participant with a monetary balance.

    Contract:
        role is set at creation and never changes.  profession is only
        meaningful for contractors.

    Guarantees:
        - balance is never negative once flushed.
        - version increases by one on every UPDATE.

    Non-goals:
        - Profiles are created by an external onboarding flow; the ledger
          never inserts them outside seed data and tests.
    """

    __tablename__ = "profiles"

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_profile_balance_non_negative"),
        Index("idx_profile_role", "role"),
        Index("idx_profile_profession", "profession"),
    )

    first_name: Mapped[ShortText] = mapped_column(nullable=False)

    last_name: Mapped[ShortText] = mapped_column(nullable=False)

    profession: Mapped[str | None] = mapped_column(String(100), nullable=True)

    balance: Mapped[Money] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    role: Mapped[ProfileRole] = mapped_column(
        String(20),
        nullable=False,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_contractor(self) -> bool:
        return ProfileRole(self.role) == ProfileRole.CONTRACTOR

    def __repr__(self) -> str:
        return f"<Profile {self.id}: {self.full_name} ({ProfileRole(self.role).value})>"
