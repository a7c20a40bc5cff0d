"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``ledger_config.schema`` dataclasses.  Runtime callers go through
``ledger_config.get_active_config()``; this module is its implementation
and test tooling.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Required keys (``database.url``) have no silent default.
* Numeric settings are range-checked; violations raise ``ConfigurationError``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or invalid values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    DatabaseConfig,
    DepositConfig,
    LedgerConfig,
    LoggingConfig,
    ReportingConfig,
    TransferConfig,
)

_VALID_LOG_LEVELS = frozenset(logging.getLevelNamesMapping())


class ConfigurationError(ValueError):
    """Configuration content is missing or out of range."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _positive_int(data: dict[str, Any], key: str, default: int, section: str) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"{section}.{key}", f"must be a positive integer, got {value!r}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse the ``database`` section.  ``url`` is required."""
    url = data.get("url")
    if not url or not isinstance(url, str):
        raise ConfigurationError("database.url", "a database URL is required")
    return DatabaseConfig(
        url=url,
        echo=bool(data.get("echo", False)),
        pool_size=_positive_int(data, "pool_size", 20, "database"),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=_positive_int(data, "pool_timeout", 30, "database"),
        pool_recycle=_positive_int(data, "pool_recycle", 1800, "database"),
    )


def parse_transfer(data: dict[str, Any]) -> TransferConfig:
    """Parse the ``transfer`` section."""
    backoff = float(data.get("retry_backoff_seconds", 0.05))
    if backoff < 0:
        raise ConfigurationError(
            "transfer.retry_backoff_seconds", f"must be >= 0, got {backoff}"
        )
    return TransferConfig(
        max_attempts=_positive_int(data, "max_attempts", 5, "transfer"),
        retry_backoff_seconds=backoff,
    )


def parse_deposit(data: dict[str, Any]) -> DepositConfig:
    """Parse the ``deposit`` section."""
    return DepositConfig(
        cap_divisor=_positive_int(data, "cap_divisor", 4, "deposit"),
    )


def parse_reporting(data: dict[str, Any]) -> ReportingConfig:
    """Parse the ``reporting`` section."""
    return ReportingConfig(
        best_clients_default_limit=_positive_int(
            data, "best_clients_default_limit", 2, "reporting"
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    """Parse the ``logging`` section."""
    level = str(data.get("level", "INFO")).upper()
    if level not in _VALID_LOG_LEVELS:
        raise ConfigurationError("logging.level", f"unknown level {level!r}")
    return LoggingConfig(level=level)


def parse_config(data: dict[str, Any]) -> LedgerConfig:
    """Parse a complete configuration mapping."""
    return LedgerConfig(
        database=parse_database(data.get("database") or {}),
        transfer=parse_transfer(data.get("transfer") or {}),
        deposit=parse_deposit(data.get("deposit") or {}),
        reporting=parse_reporting(data.get("reporting") or {}),
        logging=parse_logging(data.get("logging") or {}),
    )


def load_config(path: Path) -> LedgerConfig:
    """Load and parse one YAML configuration file."""
    return parse_config(load_yaml_file(path))
