"""
Typed Exception Hierarchy for the Marketplace Ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (an HTTP layer, scripts, tests) must react to failures
precisely: a job that cannot be paid is a 404, a client without funds is a
402, a missing contractor row is an internal fault.  Parsing messages for
that is fragile, so every failure is:

  1. A TYPED exception class (catch by type, not message)
  2. Carrying a CODE attribute (machine-readable, API-safe)
  3. Carrying a SURFACE attribute (how an outer layer presents it)
  4. Storing its context as attributes (not just a message string)

Example:

    try:
        orchestrator.pay_job(caller_id, job_id)
    except JobNotPayableError as e:      # typed catch
        return respond(404, code=e.code)
    except InsufficientFundsError as e:  # structured data
        return respond(402, code=e.code, required=str(e.required))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    MarketplaceLedgerError (base)
    |
    +-- NotFoundError
    |   +-- ProfileNotFoundError
    |   +-- ContractNotFoundError
    |   +-- JobNotPayableError
    |
    +-- UnauthenticatedError
    |
    +-- TransferError
    |   +-- InsufficientFundsError
    |   +-- InvalidAmountError
    |
    +-- DepositError
    |   +-- NotAContractorError
    |   +-- DepositNotAllowedError
    |
    +-- QueryError
    |   +-- InvalidDateRangeError
    |   +-- InvalidLimitError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- IntegrityViolationError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                      | Surface          | When Raised
--------------------------|------------------|---------------------------------
PROFILE_NOT_FOUND         | not_found        | Profile id does not resolve
CONTRACT_NOT_FOUND        | not_found        | Absent or not visible to caller
JOB_NOT_PAYABLE           | not_found        | Wrong caller, already paid, absent
UNAUTHENTICATED           | unauthorized     | Request carries no known profile
INSUFFICIENT_FUNDS        | payment_required | Source balance below amount
INVALID_AMOUNT            | bad_request      | Non-positive or self transfer
NOT_A_CONTRACTOR          | not_found        | Deposit target is not a contractor
DEPOSIT_NOT_ALLOWED       | bad_request      | Deposit cap is zero
INVALID_DATE_RANGE        | bad_request      | start > end
INVALID_LIMIT             | bad_request      | limit < 1
OPTIMISTIC_LOCK_CONFLICT  | conflict         | Contention retries exhausted
INTEGRITY_VIOLATION       | internal         | Referenced row missing
IMMUTABILITY_VIOLATION    | internal         | Modifying a paid job

NotFound-class errors deliberately carry the same surface whether the entity
is absent or merely invisible to the caller, so existence is not leaked.
"""

from decimal import Decimal


class MarketplaceLedgerError(Exception):
    """
    Base exception for all marketplace ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification and a `surface` class attribute naming the class
    of response an outer layer should produce.
    """

    code: str = "MARKETPLACE_LEDGER_ERROR"
    surface: str = "internal"


# Not-found exceptions


class NotFoundError(MarketplaceLedgerError):
    """Base exception for absent or invisible entities."""

    code: str = "NOT_FOUND"
    surface: str = "not_found"


class ProfileNotFoundError(NotFoundError):
    """Profile with given ID was not found."""

    code: str = "PROFILE_NOT_FOUND"

    def __init__(self, profile_id: int):
        self.profile_id = profile_id
        super().__init__(f"Profile not found: {profile_id}")


class ContractNotFoundError(NotFoundError):
    """Contract is absent or not visible to the caller."""

    code: str = "CONTRACT_NOT_FOUND"

    def __init__(self, contract_id: int, caller_id: int):
        self.contract_id = contract_id
        self.caller_id = caller_id
        super().__init__(f"Contract not found: {contract_id}")


class JobNotPayableError(NotFoundError):
    """Job does not exist, is already paid, or does not belong to the caller."""

    code: str = "JOB_NOT_PAYABLE"

    def __init__(self, job_id: int, caller_id: int):
        self.job_id = job_id
        self.caller_id = caller_id
        super().__init__(f"Job not payable: {job_id}")


class UnauthenticatedError(MarketplaceLedgerError):
    """The request does not identify a known profile."""

    code: str = "UNAUTHENTICATED"
    surface: str = "unauthorized"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Unauthenticated: {reason}")


# Transfer exceptions


class TransferError(MarketplaceLedgerError):
    """Base exception for balance transfer errors."""

    code: str = "TRANSFER_ERROR"
    surface: str = "bad_request"


class InsufficientFundsError(TransferError):
    """Source balance is lower than the amount to move."""

    code: str = "INSUFFICIENT_FUNDS"
    surface: str = "payment_required"

    def __init__(self, profile_id: int, balance: Decimal, required: Decimal):
        self.profile_id = profile_id
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient funds on profile {profile_id}: "
            f"balance {balance}, required {required}"
        )


class InvalidAmountError(TransferError):
    """Amount is not a positive value, or the transfer is degenerate."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: Decimal, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount}: {reason}")


# Deposit exceptions


class DepositError(MarketplaceLedgerError):
    """Base exception for deposit workflow errors."""

    code: str = "DEPOSIT_ERROR"
    surface: str = "bad_request"


class NotAContractorError(DepositError):
    """Deposit target is missing or does not have the contractor role."""

    code: str = "NOT_A_CONTRACTOR"
    surface: str = "not_found"

    def __init__(self, profile_id: int):
        self.profile_id = profile_id
        super().__init__(f"Profile '{profile_id}' is not a contractor")


class DepositNotAllowedError(DepositError):
    """The caller's deposit cap leaves nothing to deposit."""

    code: str = "DEPOSIT_NOT_ALLOWED"

    def __init__(self, profile_id: int, total_unpaid: Decimal, cap: Decimal):
        self.profile_id = profile_id
        self.total_unpaid = total_unpaid
        self.cap = cap
        super().__init__(
            f"Deposit not allowed for profile {profile_id}: "
            f"cap is {cap} (unpaid jobs total {total_unpaid})"
        )


# Query exceptions


class QueryError(MarketplaceLedgerError):
    """Base exception for invalid read-side query parameters."""

    code: str = "QUERY_ERROR"
    surface: str = "bad_request"


class InvalidDateRangeError(QueryError):
    """Aggregation window start is after its end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: {start} is after {end}")


class InvalidLimitError(QueryError):
    """Ranking limit is not a positive integer."""

    code: str = "INVALID_LIMIT"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Invalid limit: {limit}")


# Concurrency exceptions


class ConcurrencyError(MarketplaceLedgerError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"
    surface: str = "conflict"


class OptimisticLockError(ConcurrencyError):
    """Concurrent modification could not be resolved within the retry budget."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, attempts: int = 1):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.attempts = attempts
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            f"entity was modified by another transaction ({attempts} attempt(s))"
        )


# Internal faults


class IntegrityViolationError(MarketplaceLedgerError):
    """A row referenced by another row is missing."""

    code: str = "INTEGRITY_VIOLATION"
    surface: str = "internal"

    def __init__(self, entity_type: str, entity_id: int, referenced_by: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.referenced_by = referenced_by
        super().__init__(
            f"Integrity violation: {entity_type} {entity_id} "
            f"referenced by {referenced_by} does not exist"
        )


class ImmutabilityViolationError(MarketplaceLedgerError):
    """Attempted to modify or delete a record that is immutable."""

    code: str = "IMMUTABILITY_VIOLATION"
    surface: str = "internal"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )
