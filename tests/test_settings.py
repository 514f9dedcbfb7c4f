"""Typed smoke tests for the settings loader.

These tests verify four guarantees:
1) Importing the module-level `settings` yields a `Settings` instance.
2) Environment variables override defaults after clearing the loader cache.
3) Client/server tunables (debounce, allocation cap) are read from env.
4) `get_logger()` respects the configured LOG_LEVEL when constructing loggers.
"""

from __future__ import annotations

import logging
from typing import Any

from notewall.core.settings import (
    PACKAGE_STATIC_DIR,
    Settings,
    get_logger,
    load_settings,
    settings,
)


def test_settings_instance_type() -> None:
    """`settings` should be an instance of the typed `Settings` model."""
    assert isinstance(settings, Settings)


def test_defaults_point_at_packaged_shell() -> None:
    s = Settings()
    assert s.static_dir == PACKAGE_STATIC_DIR
    assert (s.static_dir / "index.html").is_file()
    assert s.recent_limit == 5


def test_env_overrides_with_cache_clear(monkeypatch: Any) -> None:
    """Changing env vars should take effect after `load_settings.cache_clear()`."""
    monkeypatch.setenv("NOTEWALL_ENV", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    load_settings.cache_clear()
    s = load_settings()

    assert s.environment == "test"
    assert s.log_level == "DEBUG"
    assert s.is_test and not s.is_prod
    load_settings.cache_clear()


def test_sync_tunables_from_env(monkeypatch: Any) -> None:
    monkeypatch.setenv("NOTEWALL_DEBOUNCE_SECONDS", "0.25")
    monkeypatch.setenv("NOTEWALL_ALLOCATION_MAX_ATTEMPTS", "0")
    monkeypatch.setenv("NOTEWALL_API_URL", "http://walls.example:9000")

    load_settings.cache_clear()
    s = load_settings()

    assert s.debounce_seconds == 0.25
    assert s.allocation_max_attempts == 0
    assert s.api_url == "http://walls.example:9000"
    load_settings.cache_clear()


def test_get_logger_respects_level(monkeypatch: Any) -> None:
    """`get_logger()` should apply the numeric level derived from `LOG_LEVEL`."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    load_settings.cache_clear()

    logger = get_logger("notewall.tests.settings")

    assert logger.level == logging.ERROR
    assert logger.handlers, "Expected at least one StreamHandler to be attached."
    load_settings.cache_clear()
