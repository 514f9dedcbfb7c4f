# tests/test_cli.py
"""
Tests for the NoteWall command-line interface (CLI).

Scope
-----
These tests verify the interaction layer provided by Typer:
1.  **Command Registration**: `--help` lists every command.
2.  **Read-only commands**: `show` and `health` render what the server says and
    exit non-zero on failures.
3.  **Editing sessions**: `edit` drives the sync engine from stdin; the
    transport is swapped for an in-process store so no server is needed.
4.  **Exit guard**: `quit`, end of input and Ctrl-C ask before dropping
    unsaved edits.

We use `typer.testing.CliRunner` to invoke the app in-process. Sessions run
with `--debounce 0` so saves happen as soon as the loop is free.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from notewall.cli import LEAVE_PROMPT, app, console
from notewall.client.clipboard import MemoryClipboard
from notewall.client.engine import EXIT_WARNING
from notewall.client.transport import HttpTransport, StoreTransport
from notewall.core.errors import TransportFailure
from notewall.core.store import CollectionStore

API = "http://walls.test"


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create a fresh CliRunner for each test."""
    return CliRunner()


@pytest.fixture  # type: ignore[misc]
def store() -> Generator[CollectionStore, None, None]:
    """A fresh store, wired in as the transport every command builds."""
    store = CollectionStore()
    clipboard = MemoryClipboard()
    with (
        patch("notewall.cli._build_transport", return_value=StoreTransport(store)),
        patch("notewall.cli.SystemClipboard", return_value=clipboard),
    ):
        yield store


def test_cli_help_shows_usage(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0, f"Help failed: {result.output}"
    assert "NoteWall" in result.output
    for command in ("serve", "health", "show", "edit"):
        assert command in result.output


def test_show_prints_notes(runner: CliRunner, store: CollectionStore) -> None:
    record = store.create([{"id": 1, "text": "buy milk", "color": "pink"}])

    result = runner.invoke(app, ["show", record.id])

    assert result.exit_code == 0, result.output
    assert record.id in result.output
    assert "buy milk" in result.output
    assert "pink" in result.output


def test_show_unknown_wall_exits_1(runner: CliRunner, store: CollectionStore) -> None:
    result = runner.invoke(app, ["show", "zzzzzzzz"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_health_renders_diagnostics(runner: CliRunner) -> None:
    report = {
        "status": "ok",
        "environment": "test",
        "version": "0.3.0",
        "collections": 2,
        "totalNotes": 5,
        "recent": [
            {"id": "abcd1234", "notesCount": 3, "lastAccessed": "2024-01-02T00:00:00Z"},
        ],
    }
    with patch.object(HttpTransport, "_request", return_value=(200, report)) as mock_req:
        result = runner.invoke(app, ["health", "--api", API])

    assert result.exit_code == 0, result.output
    mock_req.assert_called_once_with("GET", "/api/health", None)
    assert "abcd1234" in result.output
    assert "walls" in result.output


def test_health_failure_exits_1(runner: CliRunner) -> None:
    down = TransportFailure("GET http://walls.test/api/health unreachable")
    with patch.object(HttpTransport, "_request", side_effect=down):
        result = runner.invoke(app, ["health", "--api", API])

    assert result.exit_code == 1
    assert "Health check failed" in result.output


def test_edit_session_creates_and_shares_wall(runner: CliRunner, store: CollectionStore) -> None:
    result = runner.invoke(
        app,
        ["edit", "--api", API, "--debounce", "0"],
        input="add hello\nshare\nquit\n",
    )

    assert result.exit_code == 0, result.output
    assert len(store) == 1
    (wall_id,) = store.ids()
    assert [n.text for n in store.read(wall_id).notes] == ["", "hello"]
    assert f"{API}/{wall_id}" in result.output
    assert "Copied to clipboard" in result.output
    assert "Bye. Wall address" in result.output


def test_edit_session_reports_errors_and_keeps_going(
    runner: CliRunner, store: CollectionStore
) -> None:
    record = store.create([{"id": 1, "text": "keep"}])

    result = runner.invoke(
        app,
        ["edit", record.id, "--api", API, "--debounce", "0"],
        input="rm 1\ncolor 1 chartreuse\nfrobnicate\nlist\nquit\n",
    )

    assert result.exit_code == 0, result.output
    assert "has text" in result.output
    assert "Unknown command" in result.output
    assert "keep" in result.output
    assert [n.text for n in store.read(record.id).notes] == ["keep"]


def test_edit_session_empty_stdin_leaves_nothing_behind(
    runner: CliRunner, store: CollectionStore
) -> None:
    result = runner.invoke(app, ["edit", "--api", API, "--debounce", "0"], input="")
    assert result.exit_code == 0, result.output
    assert len(store) == 0
    assert f"Bye. Wall address: {API}/" in result.output


def test_serve_delegates_to_server_main(runner: CliRunner) -> None:
    calls: list[dict[str, Any]] = []
    with patch("notewall.api.server.main", side_effect=lambda **kw: calls.append(kw)):
        result = runner.invoke(app, ["serve", "--port", "9001", "--no-reload"])

    assert result.exit_code == 0, result.output
    assert calls == [{"host": None, "port": 9001, "reload": False}]


def test_ctrl_c_with_unsaved_edit_asks_before_leaving(
    runner: CliRunner, store: CollectionStore
) -> None:
    """Ctrl-C goes through the same exit guard as `quit`; declining keeps the session."""
    lines = ["add hello", KeyboardInterrupt(), "n", KeyboardInterrupt(), "yes"]
    with patch.object(console, "input", side_effect=lines) as mock_input:
        result = runner.invoke(app, ["edit", "--api", API, "--debounce", "30"])

    assert result.exit_code == 0, result.output
    assert mock_input.call_count == 5
    assert result.output.count(EXIT_WARNING) == 2
    assert mock_input.call_args_list[2].args[0] == LEAVE_PROMPT
    assert mock_input.call_args_list[4].args[0] == LEAVE_PROMPT
    # the user confirmed, so the unsaved edit is dropped
    assert len(store) == 0
    assert "Bye. Wall address" in result.output


def test_quit_with_unsaved_edit_can_be_declined(runner: CliRunner, store: CollectionStore) -> None:
    lines = ["add hello", "quit", "no", "save", "quit"]
    with patch.object(console, "input", side_effect=lines) as mock_input:
        result = runner.invoke(app, ["edit", "--api", API, "--debounce", "30"])

    assert result.exit_code == 0, result.output
    assert mock_input.call_count == 5
    assert result.output.count(EXIT_WARNING) == 1
    (wall_id,) = store.ids()
    assert [n.text for n in store.read(wall_id).notes] == ["", "hello"]


def test_ctrl_c_on_clean_wall_leaves_without_asking(
    runner: CliRunner, store: CollectionStore
) -> None:
    with patch.object(console, "input", side_effect=[KeyboardInterrupt()]) as mock_input:
        result = runner.invoke(app, ["edit", "--api", API, "--debounce", "30"])

    assert result.exit_code == 0, result.output
    assert mock_input.call_count == 1
    assert EXIT_WARNING not in result.output
    assert f"Bye. Wall address: {API}/" in result.output
