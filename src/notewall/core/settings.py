"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the working directory: .env, .env.local, .env.dev/.env.test/.env.prod

Both halves of NoteWall read from it: the server (host, port, allocation
cap, diagnostics size, static directory) and the client (API URL, debounce
window, transport timeout).
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

PACKAGE_STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `NOTEWALL_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    host, port : str, int
        Bind address for `notewall serve`.
    api_url : str
        Base URL the client transport talks to.
    debounce_seconds : float
        Quiet period after the last local edit before a save fires.
    transport_timeout_seconds : float
        Per-request network timeout for the HTTP transport.
    allocation_max_attempts : int
        Cap on identifier draws per create; 0 disables the cap.
    recent_limit : int
        How many recently accessed walls `/api/health` lists.
    static_dir : Path
        Directory holding the application shell and its assets.
    """

    environment: EnvName = Field(default="dev", alias="NOTEWALL_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    host: str = Field(default="127.0.0.1", alias="NOTEWALL_HOST")
    port: int = Field(default=8000, ge=1, le=65535, alias="NOTEWALL_PORT")
    api_url: str = Field(default="http://127.0.0.1:8000", alias="NOTEWALL_API_URL")

    debounce_seconds: float = Field(default=1.0, ge=0.0, alias="NOTEWALL_DEBOUNCE_SECONDS")
    transport_timeout_seconds: float = Field(
        default=10.0, gt=0.0, alias="NOTEWALL_TRANSPORT_TIMEOUT_SECONDS"
    )
    allocation_max_attempts: int = Field(default=32, ge=0, alias="NOTEWALL_ALLOCATION_MAX_ATTEMPTS")
    recent_limit: int = Field(default=5, ge=0, alias="NOTEWALL_RECENT_LIMIT")
    static_dir: Path = Field(default=PACKAGE_STATIC_DIR, alias="NOTEWALL_STATIC_DIR")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    We keep this behind an LRU cache so tests can force a rebuild via
    `load_settings.cache_clear()` after mutating `os.environ`.
    """
    os.environ.setdefault("NOTEWALL_ENV", "dev")
    return Settings()


# Export a ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "notewall") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
