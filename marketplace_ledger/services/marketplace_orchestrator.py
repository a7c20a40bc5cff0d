"""
MarketplaceOrchestrator -- the ledger's public interface.

Responsibility:
    Wires the store, clock and configuration into the workflows and
    selectors, and exposes the operations an outer (HTTP) layer calls.
    Each call is its own transaction.

Architecture position:
    Ledger > Services -- composition root.  Nothing here holds process-wide
    state; build one orchestrator per store.

Usage:
    config = get_active_config()
    orchestrator = create_orchestrator(config)
    job = orchestrator.pay_job(caller_id=1, job_id=2)
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from ledger_config.schema import DatabaseConfig, LedgerConfig
from marketplace_ledger.db.engine import LedgerStore
from marketplace_ledger.db.immutability import register_immutability_listeners
from marketplace_ledger.domain.clock import Clock, SystemClock
from marketplace_ledger.domain.dtos import (
    ClientPayments,
    ContractInfo,
    DepositResult,
    JobInfo,
    ProfessionEarnings,
)
from marketplace_ledger.logging_config import configure_logging
from marketplace_ledger.selectors.aggregation_selector import AggregationSelector
from marketplace_ledger.selectors.contract_selector import ContractSelector
from marketplace_ledger.services.deposit_service import DepositService
from marketplace_ledger.services.payment_service import PaymentService
from marketplace_ledger.services.profile_resolver import HeaderProfileResolver
from marketplace_ledger.services.transfer_service import TransferEngine


class MarketplaceOrchestrator:
    """
    Composition root for the ledger core.

    Contract:
        Exposes contract/job reads, job payment, deposits and the earnings
        rankings.  Mutating calls go through the TransferEngine; reads open
        a plain session scope.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.config = config or LedgerConfig(
            database=DatabaseConfig(url=store.engine.url.render_as_string(hide_password=False))
        )

        register_immutability_listeners()

        self.transfer_engine = TransferEngine(store, self.config.transfer)
        self.payments = PaymentService(self.transfer_engine, self.clock)
        self.deposits = DepositService(self.transfer_engine, self.config.deposit)
        self.profile_resolver = HeaderProfileResolver(store)

    # -- reads ------------------------------------------------------------

    def get_contract(self, caller_id: int, contract_id: int) -> ContractInfo:
        with self.store.session_scope() as session:
            return ContractSelector(session).get_contract(caller_id, contract_id)

    def list_contracts(self, caller_id: int, exclude_terminated: bool = False) -> list[ContractInfo]:
        with self.store.session_scope() as session:
            return ContractSelector(session).list_contracts(caller_id, exclude_terminated)

    def list_unpaid_jobs(self, caller_id: int, active_only: bool = False) -> list[JobInfo]:
        with self.store.session_scope() as session:
            return ContractSelector(session).list_unpaid_jobs(caller_id, active_only)

    # -- ledger core ------------------------------------------------------

    def pay_job(self, caller_id: int, job_id: int) -> JobInfo:
        return self.payments.pay_job(caller_id, job_id)

    def deposit(
        self,
        caller_id: int,
        target_id: int,
        amount: Decimal | None = None,
    ) -> DepositResult:
        return self.deposits.deposit(caller_id, target_id, amount)

    # -- rankings ---------------------------------------------------------

    def profession_earnings(
        self,
        start: date | datetime,
        end: date | datetime,
    ) -> list[ProfessionEarnings]:
        with self.store.session_scope() as session:
            return AggregationSelector(session).profession_earnings(start, end)

    def best_profession(self, start: date | datetime, end: date | datetime) -> str | None:
        with self.store.session_scope() as session:
            return AggregationSelector(session).best_profession(start, end)

    def best_clients(
        self,
        start: date | datetime,
        end: date | datetime,
        limit: int | None = None,
    ) -> list[ClientPayments]:
        if limit is None:
            limit = self.config.reporting.best_clients_default_limit
        with self.store.session_scope() as session:
            return AggregationSelector(session).best_clients(start, end, limit)


def create_orchestrator(
    config: LedgerConfig,
    clock: Clock | None = None,
) -> MarketplaceOrchestrator:
    """Build a store from ``config`` and wire an orchestrator around it."""
    configure_logging(level=config.logging.level)
    store = LedgerStore.from_config(config.database)
    return MarketplaceOrchestrator(store, clock=clock, config=config)
