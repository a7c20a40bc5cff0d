"""
Tests for ledger configuration loading.

Verifies:
- The shipped default set parses into a frozen LedgerConfig
- Environment overrides for the database URL and log level
- Missing and out-of-range values raise ConfigurationError
"""

import dataclasses
from pathlib import Path

import pytest
import yaml

from ledger_config import (
    ConfigurationError,
    LedgerConfig,
    get_active_config,
)
from ledger_config.loader import load_config, parse_config


def _write(tmp_path, data) -> Path:
    path = tmp_path / "ledger.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaultConfig:
    """Tests for the shipped default.yaml."""

    def test_loads_defaults(self):
        config = get_active_config(environ={})

        assert isinstance(config, LedgerConfig)
        assert config.database.url.startswith("sqlite:///")
        assert config.transfer.max_attempts == 5
        assert config.deposit.cap_divisor == 4
        assert config.reporting.best_clients_default_limit == 2
        assert config.logging.level == "INFO"

    def test_config_is_frozen(self):
        config = get_active_config(environ={})
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.deposit.cap_divisor = 2

    def test_load_is_logged(self, captured_logs):
        get_active_config(environ={})
        records = [r for r in captured_logs() if r["message"] == "ledger_config_loaded"]
        assert records[0]["dialect"] == "sqlite"
        assert records[0]["overrides"] == []


class TestEnvironmentOverrides:
    """Tests for LEDGER_* environment overrides."""

    def test_database_url_override(self):
        config = get_active_config(
            environ={"LEDGER_DATABASE_URL": "postgresql://u:p@localhost/ledger"}
        )
        assert config.database.url == "postgresql://u:p@localhost/ledger"
        assert config.database.pool_size == 20

    def test_log_level_override(self):
        config = get_active_config(environ={"LEDGER_LOG_LEVEL": "debug"})
        assert config.logging.level == "DEBUG"

    def test_invalid_log_level_override(self):
        with pytest.raises(ConfigurationError):
            get_active_config(environ={"LEDGER_LOG_LEVEL": "chatty"})


class TestLoader:
    """Tests for YAML parsing and validation."""

    def test_minimal_file_uses_defaults(self, tmp_path):
        path = _write(tmp_path, {"database": {"url": "sqlite:///x.db"}})

        config = load_config(path)

        assert config.database.url == "sqlite:///x.db"
        assert config.transfer.retry_backoff_seconds == 0.05
        assert config.deposit.cap_divisor == 4

    def test_explicit_path(self, tmp_path):
        path = _write(
            tmp_path,
            {"database": {"url": "sqlite:///y.db"}, "deposit": {"cap_divisor": 10}},
        )
        config = get_active_config(path, environ={})
        assert config.deposit.cap_divisor == 10

    def test_database_url_required(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"database": {}})
        assert exc_info.value.key == "database.url"

    @pytest.mark.parametrize(
        "section,key,value",
        [
            ("transfer", "max_attempts", 0),
            ("deposit", "cap_divisor", 0),
            ("reporting", "best_clients_default_limit", -1),
            ("database", "pool_size", "many"),
        ],
    )
    def test_positive_integers_enforced(self, section, key, value):
        data = {"database": {"url": "sqlite://"}}
        data.setdefault(section, {})[key] = value
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(data)
        assert exc_info.value.key == f"{section}.{key}"

    def test_negative_backoff_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_config(
                {"database": {"url": "sqlite://"}, "transfer": {"retry_backoff_seconds": -1}}
            )

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")
