"""
config.py — Runtime Configuration for the Order Service

All settings come from environment variables so the service can be configured
the same way locally, in Docker and in tests.

Variables:
    • DATABASE_URL         SQLAlchemy URL of the relational store
    • LOG_LEVEL            Root log level (INFO)
    • LOG_FILE             Log file path, empty string disables file logging
    • SEED_DATABASE        Seed demo data into an empty store on startup
    • DEFAULT_PAGE_SIZE    Page size used when a listing request omits it
    • MAX_PAGE_SIZE        Largest page size a listing request may ask for
    • SQLITE_BUSY_TIMEOUT  Seconds a SQLite writer waits for the database lock
"""

import os
from dataclasses import dataclass

DEFAULT_DATABASE_URL = "sqlite:///./orders.db"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Immutable set of service settings.

    Attributes:
        database_url (str): SQLAlchemy connection URL.
        log_level (str): Name of the root log level.
        log_file (str): Path of the log file; empty means console only.
        seed_database (bool): Whether startup seeds an empty store.
        default_page_size (int): Listing page size when none is given.
        max_page_size (int): Upper bound for the listing page size.
        sqlite_busy_timeout (float): Lock wait in seconds for SQLite writers.
    """
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    log_file: str = "order_service.log"
    seed_database: bool = True
    default_page_size: int = 20
    max_page_size: int = 100
    sqlite_busy_timeout: float = 30.0


def load_settings() -> Settings:
    """
    Builds the settings from the current process environment.

    Returns:
        Settings: Values from the environment, falling back to the defaults.
    """
    return Settings(
        database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_file=os.environ.get("LOG_FILE", "order_service.log"),
        seed_database=_env_bool("SEED_DATABASE", True),
        default_page_size=int(os.environ.get("DEFAULT_PAGE_SIZE", "20")),
        max_page_size=int(os.environ.get("MAX_PAGE_SIZE", "100")),
        sqlite_busy_timeout=float(os.environ.get("SQLITE_BUSY_TIMEOUT", "30")),
    )
