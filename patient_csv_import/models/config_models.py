from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the CSV patient import.

These are the typed view of config/import.yml produced by
patient_csv_import.config.loader. Every section has defaults so an import can run
without any config file.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportDefaults:
    """Values written when the CSV leaves a required attribute empty."""
    last_name: str = "Inconnu"
    phone: str = "0000000000"
    gender: str = "M"
    consultation_reason: str = "Consultation"
    consultation_time: str = "09:00:00"  # appended to parsed consultation dates


@dataclass(frozen=True)
class StoreConfig:
    """Store call limits.

    statement_timeout_ms bounds every store call (PostgreSQL statement_timeout);
    retry_budget is the number of timed-out calls a single row may retry (0 = none).
    """
    statement_timeout_ms: int = 30000
    retry_budget: int = 0


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import process."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    defaults: ImportDefaults = field(default_factory=ImportDefaults)
    store: StoreConfig = field(default_factory=StoreConfig)
    practitioner_user_id: str | None = None  # current user when not given on the CLI
    error_log_dir: str = "./logs"
