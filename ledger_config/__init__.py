"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - The returned ``LedgerConfig`` has passed loader validation.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ConfigurationError`` -- missing or out-of-range values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``ledger_config_loaded`` log entry naming the source file, the database
    dialect and which environment overrides were applied.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from ledger_config.loader import ConfigurationError, load_config, parse_logging
from ledger_config.schema import (
    DatabaseConfig,
    DepositConfig,
    LedgerConfig,
    LoggingConfig,
    ReportingConfig,
    TransferConfig,
)

_logger = logging.getLogger("marketplace_ledger.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

ENV_DATABASE_URL = "LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "LEDGER_LOG_LEVEL"


def get_active_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to ``sets/default.yaml``.
        environ: Environment mapping for overrides.  Defaults to ``os.environ``.

    Returns:
        A validated, frozen ``LedgerConfig``.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ

    config = load_config(path)
    overrides: list[str] = []

    database_url = env.get(ENV_DATABASE_URL)
    if database_url:
        config = dataclasses.replace(
            config,
            database=dataclasses.replace(config.database, url=database_url),
        )
        overrides.append(ENV_DATABASE_URL)

    log_level = env.get(ENV_LOG_LEVEL)
    if log_level:
        config = dataclasses.replace(
            config, logging=parse_logging({"level": log_level})
        )
        overrides.append(ENV_LOG_LEVEL)

    _logger.info(
        "ledger_config_loaded",
        extra={
            "config_path": str(path),
            "dialect": config.database.url.split(":", 1)[0],
            "overrides": overrides,
        },
    )
    return config


__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "DepositConfig",
    "LedgerConfig",
    "LoggingConfig",
    "ReportingConfig",
    "TransferConfig",
    "get_active_config",
]
