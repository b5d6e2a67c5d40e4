"""
Tests for configuration loading
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ledgerbook import config as config_module
from ledgerbook.config import LedgerConfig, get_config, reload_config


class TestLedgerConfig:

    def test_defaults(self, monkeypatch):
        for name in ("DATA_DIR", "STORAGE_BACKEND", "LOG_LEVEL", "TX_ID_WIDTH"):
            monkeypatch.delenv(f"LEDGERBOOK_{name}", raising=False)
        config = LedgerConfig()

        assert config.data_dir == Path("data")
        assert config.accounts_path == Path("data") / "accounts.csv"
        assert config.ledger_path == Path("data") / "ledger.csv"
        assert config.storage_backend == "csv"
        assert config.tx_id_width == 10
        assert config.allow_duplicate_account_ids is False
        assert config.log_level == "WARNING"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LEDGERBOOK_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("LEDGERBOOK_STORAGE_BACKEND", "SQLite")
        monkeypatch.setenv("LEDGERBOOK_ALLOW_DUPLICATE_ACCOUNT_IDS", "true")
        monkeypatch.setenv("LEDGERBOOK_LOG_LEVEL", "debug")
        config = LedgerConfig()

        assert config.data_dir == tmp_path
        assert config.storage_backend == "sqlite"
        assert config.sqlite_path == tmp_path / "ledger.db"
        assert config.allow_duplicate_account_ids is True
        assert config.log_level == "DEBUG"

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            LedgerConfig(storage_backend="postgres")

    def test_rejects_unknown_log_settings(self):
        with pytest.raises(ValidationError):
            LedgerConfig(log_level="LOUD")
        with pytest.raises(ValidationError):
            LedgerConfig(log_format="xml")

    def test_rejects_zero_width_ids(self):
        with pytest.raises(ValidationError):
            LedgerConfig(tx_id_width=0)

    def test_reload_picks_up_environment(self, monkeypatch):
        original = get_config()
        monkeypatch.setenv("LEDGERBOOK_LEDGER_FILENAME", "journal.csv")
        try:
            assert reload_config().ledger_filename == "journal.csv"
            assert get_config().ledger_filename == "journal.csv"
        finally:
            config_module.config = original
