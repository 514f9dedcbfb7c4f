"""
Smoke tests for package structure and availability.

Scope
-----
These tests strictly verify that the package is installed correctly in the
environment and that top-level modules are importable.
"""

from __future__ import annotations

import importlib

from notewall import __version__


def test_package_importable() -> None:
    """Ensure the top-level package can be imported."""
    mod = importlib.import_module("notewall")
    assert mod is not None


def test_version_is_set() -> None:
    """Ensure the package exposes a valid version string."""
    assert isinstance(__version__, str)
    assert len(__version__) > 0


def test_cli_module_exposes_app() -> None:
    """
    The console script entry point (`notewall.cli:app`) must exist.
    """
    cli = importlib.import_module("notewall.cli")
    assert hasattr(cli, "app"), "notewall.cli must expose an 'app' Typer object."


def test_client_package_reexports_engine() -> None:
    client = importlib.import_module("notewall.client")
    assert {"SyncEngine", "HttpTransport", "StoreTransport"}.issubset(client.__all__)
