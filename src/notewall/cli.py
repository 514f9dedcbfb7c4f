# src/notewall/cli.py
"""
NoteWall Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Commands
--------
- **serve**: Run the HTTP API (collection store + shell routing) with uvicorn.
- **health**: Show store diagnostics from `/api/health`.
- **show**: Print the notes of one wall.
- **edit**: Interactive session on a wall, backed by the sync engine. Edits
  are saved automatically once typing goes quiet; `share` prints (and tries
  to copy) the wall's address.

Usage
-----
    $ notewall serve --port 8000
    $ notewall edit                 # start a new wall
    $ notewall edit k3v9x0qa        # continue an existing one
    $ notewall show k3v9x0qa
"""

from __future__ import annotations

import asyncio
import threading
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from notewall.client.address import AddressBar
from notewall.client.clipboard import SystemClipboard
from notewall.client.engine import EXIT_WARNING, SaveStatus, SyncEngine
from notewall.client.transport import HttpTransport, Transport
from notewall.core.contracts.note import Note
from notewall.core.errors import NoteWallError, NotFoundError
from notewall.core.settings import load_settings

load_dotenv()

app = typer.Typer(
    help="NoteWall: shareable sticky-note walls.",
    rich_markup_mode="markdown",
)
console = Console()

STATUS_STYLES = {
    SaveStatus.SAVED: "green",
    SaveStatus.SAVING: "yellow",
    SaveStatus.ERROR: "bold red",
}

COLOR_STYLES = {
    "yellow": "yellow",
    "pink": "magenta",
    "blue": "blue",
    "green": "green",
    "orange": "dark_orange",
    "purple": "purple",
}

SESSION_HELP = """\
add TEXT          add a note
set N TEXT        change the text of note N
color N COLOR     recolor note N
move N X Y        move note N
rm N              remove note N (only blank notes)
clear             blank every note, then remove them all
list              show the wall
save              save now instead of waiting
share             show (and copy) the wall's address
quit              leave the session"""

ApiOption = Annotated[
    str | None,
    typer.Option("--api", "-a", help="Server root URL (defaults to NOTEWALL_API_URL)."),
]


# --------------------------------------------------------------------------- #
# Helpers: Rendering
# --------------------------------------------------------------------------- #


def _build_transport(api: str | None) -> Transport:
    """Helper: the transport used by commands (patched in tests)."""
    return HttpTransport.from_settings(api)


def _render_notes(notes: tuple[Note, ...] | list[Note], title: str) -> None:
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Text")
    table.add_column("Color")
    table.add_column("Position", justify="right", style="dim")
    for note in notes:
        table.add_row(
            str(note.id),
            note.text or "[dim](blank)[/dim]",
            f"[{COLOR_STYLES[note.color]}]{note.color}[/]",
            f"{note.x:g}, {note.y:g}",
        )
    console.print(table)


def _status_printer() -> Any:
    """Helper: on_change callback that prints save-status transitions only."""
    last: dict[str, SaveStatus | None] = {"status": None}

    def _print(engine: SyncEngine) -> None:
        status = engine.save_status
        if status is last["status"]:
            return
        last["status"] = status
        style = STATUS_STYLES[status]
        console.print(f"[{style}]● {status.value}[/{style}]")

    return _print


def _note_id(token: str) -> int | str:
    return int(token) if token.isdigit() else token


# --------------------------------------------------------------------------- #
# Helpers: Interactive session
# --------------------------------------------------------------------------- #


PROMPT = "[bold cyan]> [/bold cyan]"
LEAVE_PROMPT = "[yellow]Leave anyway? (y/N)[/yellow] "


class _LineReader:
    """
    Reads console lines in a daemon thread.

    A read that is still waiting when the session is interrupted (Ctrl-C) is
    kept and handed to the next `readline()` call, so only one thread ever
    reads stdin. The thread is a daemon so a blocked read never holds up exit.
    """

    def __init__(self) -> None:
        self._pending: asyncio.Future[str] | None = None

    async def readline(self, prompt: str) -> str:
        if self._pending is None:
            self._pending = self._start(prompt)
        pending = self._pending
        try:
            return await asyncio.shield(pending)
        finally:
            if pending.done():
                self._pending = None

    @staticmethod
    def _start(prompt: str) -> asyncio.Future[str]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()

        def _deliver(value: str | None, error: BaseException | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(value or "")

        def _work() -> None:
            try:
                line = console.input(prompt)
            except BaseException as exc:
                outcome: tuple[str | None, BaseException | None] = (None, exc)
            else:
                outcome = (line, None)
            if not loop.is_closed():
                loop.call_soon_threadsafe(_deliver, *outcome)

        threading.Thread(target=_work, name="notewall-input", daemon=True).start()
        return future


def _absorb_interrupt(exc: BaseException) -> None:
    """Turn Ctrl-C into a leave request instead of ending the task."""
    if isinstance(exc, asyncio.CancelledError):
        task = asyncio.current_task()
        if task is not None:
            task.uncancel()


async def _confirm_leave(engine: SyncEngine, reader: _LineReader) -> bool:
    """Apply the exit guard. Returns True when the session may end."""
    if not engine.needs_exit_confirmation:
        return True
    console.print(f"[yellow]{EXIT_WARNING}[/yellow]")
    try:
        answer = await reader.readline(LEAVE_PROMPT)
    except EOFError:
        # stdin closed: nobody left to ask
        answer = "y"
    except (KeyboardInterrupt, asyncio.CancelledError) as exc:
        # a second Ctrl-C at the prompt confirms
        _absorb_interrupt(exc)
        console.print()
        answer = "y"
    return engine.request_exit(lambda _message: answer.strip().lower() in ("y", "yes"))


async def _handle(engine: SyncEngine, line: str) -> bool:
    """Apply one session command. Returns False when the user asks to leave."""
    cmd, _, rest = line.strip().partition(" ")
    args = rest.split()

    if cmd in ("", "help", "?"):
        console.print(SESSION_HELP)
    elif cmd == "add":
        note = engine.add_note(rest)
        console.print(f"[dim]added note {note.id}[/dim]")
    elif cmd == "set" and args:
        engine.update_note(_note_id(args[0]), rest.partition(" ")[2])
    elif cmd == "color" and len(args) == 2:
        engine.recolor_note(_note_id(args[0]), args[1])
    elif cmd == "move" and len(args) == 3:
        engine.move_note(_note_id(args[0]), float(args[1]), float(args[2]))
    elif cmd == "rm" and len(args) == 1:
        engine.remove_note(_note_id(args[0]))
    elif cmd == "clear":
        for note in engine.notes:
            if note.id is None:
                continue
            engine.update_note(note.id, "")
            engine.remove_note(note.id)
    elif cmd == "list":
        _render_notes(engine.notes, engine.address.current)
    elif cmd == "save":
        await engine.flush()
    elif cmd == "share":
        shared = await engine.share(SystemClipboard())
        verb = "Copied to clipboard" if shared.copied else "Copy this address"
        console.print(Panel(shared.url, title=verb, border_style="green"))
    elif cmd in ("quit", "exit"):
        return False
    else:
        console.print(f"[yellow]Unknown command:[/yellow] {line.strip()} (try 'help')")
    return True


async def _session(target: str | None, api: str | None, debounce: float | None) -> None:
    base = (api or load_settings().api_url).rstrip("/")
    initial = None
    if target:
        initial = target if "://" in target else f"{base}/{target.strip('/')}"

    engine = SyncEngine(
        _build_transport(api),
        address=AddressBar(base, initial=initial),
        debounce_seconds=debounce,
        on_change=_status_printer(),
    )
    await engine.initialize()
    _render_notes(engine.notes, engine.address.current)

    reader = _LineReader()
    while True:
        try:
            line = await reader.readline(PROMPT)
        except EOFError:
            line = "quit"
        except (KeyboardInterrupt, asyncio.CancelledError) as exc:
            _absorb_interrupt(exc)
            console.print()
            line = "quit"
        try:
            if not await _handle(engine, line) and await _confirm_leave(engine, reader):
                break
        except (NoteWallError, KeyError, ValueError) as exc:
            console.print(f"[bold red]✗[/bold red] {exc}")

    await engine.aclose()
    console.print(f"[dim]Bye. Wall address: {engine.address.current}[/dim]")


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port.")] = None,
    reload: Annotated[
        bool | None, typer.Option("--reload/--no-reload", help="Auto-reload on code changes.")
    ] = None,
) -> None:
    """Run the NoteWall HTTP API."""
    from notewall.api import server

    server.main(host=host, port=port, reload=reload)


@app.command()  # type: ignore[misc]
def health(api: ApiOption = None) -> None:
    """Show collection counts and recently used walls."""
    transport = HttpTransport.from_settings(api)
    try:
        report = asyncio.run(transport.diagnostics())
    except NoteWallError as e:
        console.print(f"[bold red]❌ Health check failed:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(
        Panel.fit(
            f"[bold]{report.get('collections', 0)}[/bold] walls, "
            f"[bold]{report.get('totalNotes', 0)}[/bold] notes "
            f"([dim]{report.get('environment', '?')} v{report.get('version', '?')}[/dim])",
            title="NoteWall",
            border_style="cyan",
        )
    )
    table = Table(title="Recently used")
    table.add_column("Wall")
    table.add_column("Notes", justify="right")
    table.add_column("Last accessed")
    for row in report.get("recent", []):
        table.add_row(row["id"], str(row["notesCount"]), str(row["lastAccessed"]))
    console.print(table)


@app.command()  # type: ignore[misc]
def show(
    collection_id: Annotated[str, typer.Argument(help="Wall identifier (8 chars).")],
    api: ApiOption = None,
) -> None:
    """Print the notes stored on a wall."""
    transport = _build_transport(api)
    try:
        record = asyncio.run(transport.read(collection_id))
    except NotFoundError as e:
        console.print(f"[bold red]❌ Wall {collection_id} not found[/bold red]")
        raise typer.Exit(code=1) from e
    except NoteWallError as e:
        console.print(f"[bold red]❌ Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    _render_notes(record.notes, f"Wall {record.id}")


@app.command()  # type: ignore[misc]
def edit(
    target: Annotated[
        str | None,
        typer.Argument(help="Wall identifier or full address; omit to start a new wall."),
    ] = None,
    api: ApiOption = None,
    debounce: Annotated[
        float | None,
        typer.Option(help="Seconds of quiet before saving (defaults to NOTEWALL_DEBOUNCE_SECONDS)."),
    ] = None,
) -> None:
    """
    Open an interactive editing session on a wall.

    Changes are saved in the background once you stop typing.
    """
    try:
        asyncio.run(_session(target, api, debounce))
    except NoteWallError as e:
        console.print(f"\n[bold red]❌ Session Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
