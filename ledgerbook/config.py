"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


STORAGE_BACKENDS = ("csv", "sqlite", "memory")
LOG_FORMATS = ("text", "json")


class LedgerConfig(BaseSettings):
    """Ledgerbook configuration"""

    model_config = SettingsConfigDict(
        env_prefix="LEDGERBOOK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage configuration
    data_dir: Path = Path("data")
    accounts_filename: str = "accounts.csv"
    ledger_filename: str = "ledger.csv"
    sqlite_filename: str = "ledger.db"
    storage_backend: str = "csv"  # csv, sqlite or memory

    # Business rules configuration
    tx_id_width: int = Field(default=10, ge=1)
    allow_duplicate_account_ids: bool = False
    statement_default_limit: int = Field(default=10, ge=0)

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "text"  # text or json
    log_file: Optional[str] = None  # If None, logs to stderr

    @field_validator("storage_backend", "log_format")
    @classmethod
    def _lowercase_choice(cls, value: str, info) -> str:
        value = value.lower()
        choices = STORAGE_BACKENDS if info.field_name == "storage_backend" else LOG_FORMATS
        if value not in choices:
            raise ValueError(f"{info.field_name} must be one of {', '.join(choices)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

    @property
    def accounts_path(self) -> Path:
        return self.data_dir / self.accounts_filename

    @property
    def ledger_path(self) -> Path:
        return self.data_dir / self.ledger_filename

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / self.sqlite_filename


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
