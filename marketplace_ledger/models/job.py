"""
Module: marketplace_ledger.models.job
Responsibility: ORM persistence for a priced unit of work under a contract.
Architecture position: Ledger > Models.  May import from db/ only.

Invariants enforced:
    - price > 0 (ck_job_price_positive).
    - Once paid is True, price, paid and payment_date are immutable and the
      row cannot be deleted (db/immutability.py).
    - paid transitions False -> True exactly once, through a conditional
      UPDATE guarded by ``paid = false`` (PaymentService).
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_ledger.db.base import IdentityInteger, TrackedBase
from marketplace_ledger.db.types import LongText, Money


class Job(TrackedBase):
    """
    Priced work item, paid by the contract's client to its contractor.

    Guarantees:
        - payment_date is None while paid is False.
        - A paid job is never payable again.
    """

    __tablename__ = "jobs"

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_job_price_positive"),
        Index("idx_job_contract", "contract_id"),
        Index("idx_job_paid_payment_date", "paid", "payment_date"),
    )

    description: Mapped[LongText] = mapped_column(nullable=False)

    price: Mapped[Money] = mapped_column(nullable=False)

    paid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    payment_date: Mapped[datetime | None] = mapped_column(nullable=True)

    contract_id: Mapped[int] = mapped_column(
        IdentityInteger,
        ForeignKey("contracts.id"),
        nullable=False,
    )

    def __repr__(self) -> str:
        state = "paid" if self.paid else "unpaid"
        return f"<Job {self.id}: {self.price} ({state})>"
