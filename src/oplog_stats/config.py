"""Centralised settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Runtime configuration for *oplog-stats*.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``OPLOG_STATS_`` namespace (stripped automatically by *pydantic-settings*).
    Command-line flags take precedence over anything configured here.
    """

    model_config = SettingsConfigDict(
        env_prefix="OPLOG_STATS_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ────────────────────────────────────────────
    host: str = "localhost"
    port: int = Field(default=27017, ge=1, le=65535)
    uri: str = ""  # full mongodb:// URI; overrides host/port when set
    username: str = ""
    password: str = ""
    auth_db: str = ""
    server_selection_timeout_ms: int = 10_000

    # ── Oplog location ────────────────────────────────────────
    oplog_database: str = "local"
    oplog_collection: str = "oplog.rs"

    # ── Scan behaviour ────────────────────────────────────────
    limit: int | None = Field(default=None, ge=0)
    print_after: int | None = Field(default=None, gt=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
