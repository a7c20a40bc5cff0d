"""
LedgerConfig schema.

Frozen dataclasses describing the runtime configuration of the ledger.
YAML files are parsed into these types by the loader; every other component
receives them already validated.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the LedgerStore."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class TransferConfig:
    """Contention handling for the TransferEngine."""

    max_attempts: int = 5
    retry_backoff_seconds: float = 0.05


@dataclass(frozen=True)
class DepositConfig:
    """Deposit cap policy: cap = floor(total_unpaid / cap_divisor)."""

    cap_divisor: int = 4


@dataclass(frozen=True)
class ReportingConfig:
    """Defaults for the aggregation queries."""

    best_clients_default_limit: int = 2


@dataclass(frozen=True)
class LoggingConfig:
    """Level for the marketplace_ledger logger hierarchy."""

    level: str = "INFO"


@dataclass(frozen=True)
class LedgerConfig:
    """Complete runtime configuration."""

    database: DatabaseConfig
    transfer: TransferConfig = field(default_factory=TransferConfig)
    deposit: DepositConfig = field(default_factory=DepositConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
