"""
ORM-Level Immutability Enforcement for paid jobs.

===============================================================================
WHY THIS EXISTS
===============================================================================

A paid job is the record that money moved from a client to a contractor.
If its price or payment date could change afterwards, the ledger would no
longer explain the balances it produced, and the aggregation reports (best
profession, best clients) would drift.

The primary guard is in PaymentService: a job becomes paid only through
``UPDATE jobs ... WHERE paid = false``.  This module is the second guard:
SQLAlchemy fires events before UPDATE/DELETE statements produced by a flush,
and the listeners below reject any change to a job that was already paid.

    session.flush()
         |
         v
    [before_update event] --> _check_job_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_job_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Bulk ``update()`` statements bypass ORM events; the payment workflow's own
conditional UPDATE is the only bulk statement that touches jobs.

===============================================================================
PROTECTED FIELDS
===============================================================================

Entity | When Immutable          | Fields
-------|-------------------------|--------------------------------------------
Job    | After paid = True       | every column except updated_at
Job    | After paid = True       | DELETE is rejected
"""

from sqlalchemy import event, inspect
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm.attributes import get_history

from marketplace_ledger.exceptions import ImmutabilityViolationError
from marketplace_ledger.logging_config import get_logger

logger = get_logger("db.immutability")

# Audit metadata may change even on immutable rows
_MUTABLE_AUDIT_FIELDS = frozenset({"updated_at"})


def _was_paid_before(target) -> bool:
    """True when the row was already paid before the pending change."""
    paid_history = get_history(target, "paid")
    if paid_history.deleted:
        return bool(paid_history.deleted[0])
    if not paid_history.added:
        return bool(target.paid)
    return False


def _check_job_immutability(mapper, connection, target):
    """
    Prevent updates to paid Job records.

    Logic:
        1. paid is changing FROM True: block (un-paying a job).
        2. paid is unchanged AND True: block any other changed column.
        3. paid is changing False -> True: allow (this IS the payment).
    """
    if not _was_paid_before(target):
        return

    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in _MUTABLE_AUDIT_FIELDS:
            continue
        if attr.history.has_changes():
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Job",
                    "entity_id": str(target.id),
                    "operation": "UPDATE",
                    "field": attr.key,
                },
            )
            raise ImmutabilityViolationError(
                entity_type="Job",
                entity_id=str(target.id),
                reason=f"Cannot modify field '{attr.key}' on paid job",
            )


def _check_job_delete(mapper, connection, target):
    """Prevent deletion of paid Job records."""
    if not target.paid:
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "Job",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="Job",
        entity_id=str(target.id),
        reason="Paid jobs cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register the paid-job enforcement listeners.

    Idempotent: registering twice does not install duplicate listeners.
    """
    from marketplace_ledger.models.job import Job

    if not event.contains(Job, "before_update", _check_job_immutability):
        event.listen(Job, "before_update", _check_job_immutability)
    if not event.contains(Job, "before_delete", _check_job_delete):
        event.listen(Job, "before_delete", _check_job_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    try:
        event.remove(target, event_name, listener_fn)
    except InvalidRequestError:
        pass


def unregister_immutability_listeners():
    """Remove the paid-job enforcement listeners (tests only)."""
    from marketplace_ledger.models.job import Job

    _safe_remove_listener(Job, "before_update", _check_job_immutability)
    _safe_remove_listener(Job, "before_delete", _check_job_delete)
