"""
BaseService -- abstract base for session-bound ledger services.

Responsibility:
    Provides the common constructor and session-handling contract for
    services that mutate ledger state inside a caller's transaction.  They
    use ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back themselves.  The caller (TransferEngine,
    or a test harness) owns commit/rollback, which is what makes the
    payment workflow's transfer + mark-paid a single atomic unit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from marketplace_ledger.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for session-bound services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Does NOT provide query-only (read) methods -- those belong
          in ``marketplace_ledger/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
