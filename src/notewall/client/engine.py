"""
Synchronization engine for a wall's local working copy.

The engine owns what the user sees (the working copy) and mirrors it into the
collection store through a `Transport`. Local edits never wait on the
network: each one marks the copy dirty and restarts a debounce timer; once
edits go quiet for `debounce_seconds`, exactly one transport call is made
with the working copy as it is at that moment.

State machine
-------------
::

    UNINITIALIZED --initialize()--> LOADING --read settles--> IDLE
    UNINITIALIZED --initialize()--> IDLE            (no identifier in address)
    IDLE | ERROR --edit--> DEBOUNCING --timer--> SAVING --settles--> IDLE | ERROR

`IDLE` and `ERROR` are the resting states. A failed save rests in `ERROR`; a
failed load rests in `IDLE` with save status ``error`` and a blank copy.

What a save does
----------------
- no remote id, no note with text       -> nothing is sent
- no remote id                          -> ``create``; the new id is shown in the address
- remote id, at least one note          -> ``replace``
- remote id, no notes left              -> ``remove``; the copy resets to one blank note

Serialization
-------------
Every transport call goes through one `SingleFlight` guard. A timer firing
while a call is in flight is parked as the pending intent and dispatched as
soon as the call settles. Failures never raise out of the timer: each call
is settled into a `Result` and turned into a status.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from notewall.client.address import AddressBar
from notewall.client.clipboard import Clipboard, SystemClipboard
from notewall.client.guard import SingleFlight
from notewall.client.scheduler import ScheduledTask
from notewall.client.transport import Transport
from notewall.core.contracts.note import DEFAULT_COLOR, CollectionRecord, Note, parse_notes
from notewall.core.errors import (
    ClipboardUnavailable,
    EngineBusyError,
    NoteNotBlankError,
    NotFoundError,
    ShareUnavailableError,
    ValidationError,
)
from notewall.core.identifiers import is_valid_identifier
from notewall.core.result import Result, settle
from notewall.core.settings import get_logger, load_settings

logger = get_logger("notewall.engine")

EXIT_WARNING = "You have unsaved changes. Are you sure you want to leave?"


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SAVING = "saving"
    ERROR = "error"


class SaveStatus(str, Enum):
    SAVED = "saved"
    SAVING = "saving"
    ERROR = "error"


def blank_note(note_id: int | str = 1) -> Note:
    return Note(id=note_id, text="", color=DEFAULT_COLOR, x=0, y=0)


def _build_note(data: dict[str, Any]) -> Note:
    try:
        return Note.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc.errors()[0].get("msg"))) from exc


@dataclass
class WorkingCopy:
    """Client-resident copy of a wall. Treat as read-only outside the engine."""

    notes: list[Note] = field(default_factory=lambda: [blank_note()])
    remote_id: str | None = None
    save_status: SaveStatus = SaveStatus.SAVED
    dirty: bool = False
    last_saved_at: datetime | None = None

    def has_text(self) -> bool:
        return any(not n.is_blank for n in self.notes)


@dataclass(frozen=True)
class ShareResult:
    url: str
    collection_id: str
    copied: bool


class SyncEngine:
    """Debounced, serialized mirror of a working copy into a remote wall.

    Parameters
    ----------
    transport:
        Remote store access (`HttpTransport` in production).
    address:
        Visible address; its first path segment is the identifier candidate.
    debounce_seconds:
        Quiet period before a save fires. Defaults to the configured value.
    on_change:
        Called with the engine after every state or status transition.
    clock:
        Source of `last_saved_at` timestamps.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        address: AddressBar | None = None,
        debounce_seconds: float | None = None,
        on_change: Callable[[SyncEngine], None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if debounce_seconds is None:
            debounce_seconds = load_settings().debounce_seconds
        self.transport = transport
        self.address = address if address is not None else AddressBar(load_settings().api_url)
        self.working_copy = WorkingCopy()
        self._on_change = on_change
        self._clock = clock or (lambda: datetime.now(UTC))
        self._timer = ScheduledTask(debounce_seconds, self._on_timer)
        self._guard = SingleFlight()
        self._state = EngineState.UNINITIALIZED
        self._revision = 0
        self._exit_confirmed = False

    # ------------------------------------------------------------ properties

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def save_status(self) -> SaveStatus:
        return self.working_copy.save_status

    @property
    def remote_id(self) -> str | None:
        return self.working_copy.remote_id

    @property
    def dirty(self) -> bool:
        return self.working_copy.dirty

    @property
    def notes(self) -> tuple[Note, ...]:
        return tuple(n.model_copy() for n in self.working_copy.notes)

    @property
    def debounce_seconds(self) -> float:
        return self._timer.delay

    # -------------------------------------------------------- initialization

    async def initialize(self, candidate: str | None = None) -> None:
        """Load the wall named by ``candidate`` (default: the address segment).

        A candidate that is not a well-formed identifier starts a fresh,
        unsaved wall without touching the network.
        """
        if self._state is not EngineState.UNINITIALIZED:
            raise RuntimeError("engine already initialized")
        if candidate is None:
            candidate = self.address.segment

        if not is_valid_identifier(candidate):
            self._reset_blank()
            self._settle(SaveStatus.SAVED)
            return

        collection_id: str = candidate
        self._set_state(EngineState.LOADING)
        outcome: list[Result[CollectionRecord, Exception]] = []

        async def load() -> None:
            outcome.append(await settle(self.transport.read(collection_id)))

        await self._guard.run(load)
        result = outcome[0]

        if result.is_ok():
            record = result.unwrap()
            self._adopt(record.notes)
            self.working_copy.remote_id = record.id
            self.address.show(record.id)
            logger.debug("loaded %s (%d notes)", record.id, len(record.notes))
            self._settle(SaveStatus.SAVED)
            return

        error = result.unwrap_err()
        self._reset_blank()
        if isinstance(error, NotFoundError):
            logger.info("wall %s does not exist; starting fresh", candidate)
            self.address.reset()
            self._settle(SaveStatus.SAVED)
        else:
            logger.warning("loading %s failed: %s", candidate, error)
            # the blank copy is usable; the status alone reports the failure
            self._settle(SaveStatus.ERROR, rest=EngineState.IDLE)

    # ----------------------------------------------------------- edit surface

    def add_note(
        self,
        text: str = "",
        *,
        color: str = DEFAULT_COLOR,
        x: float = 0,
        y: float = 0,
    ) -> Note:
        """Append a note and schedule a save. Returns the new note."""
        self._check_editable()
        note = _build_note(
            {"id": self._next_note_id(), "text": text, "color": color, "x": x, "y": y}
        )
        self.working_copy.notes.append(note)
        self._mark_dirty()
        return note.model_copy()

    def update_note(self, note_id: int | str, text: str) -> None:
        self._edit(note_id, text=text)

    def recolor_note(self, note_id: int | str, color: str) -> None:
        self._edit(note_id, color=color)

    def move_note(self, note_id: int | str, x: float, y: float) -> None:
        self._edit(note_id, x=x, y=y)

    def remove_note(self, note_id: int | str) -> None:
        """Remove a note. Only blank notes may be removed.

        Raises
        ------
        NoteNotBlankError
            If the note still carries text; the working copy is unchanged.
        """
        self._check_editable()
        index = self._index_of(note_id)
        if not self.working_copy.notes[index].is_blank:
            raise NoteNotBlankError(f"Note {note_id} has text; clear it before removing")
        del self.working_copy.notes[index]
        self._mark_dirty()

    def replace_notes(self, notes: Iterable[Note | dict[str, Any]]) -> None:
        """Swap in a whole new list of notes (may be empty)."""
        self._check_editable()
        incoming = list(notes)
        self.working_copy.notes = parse_notes(incoming) if incoming else []
        self._mark_dirty()

    # ------------------------------------------------------------ exit guard

    @property
    def needs_exit_confirmation(self) -> bool:
        wc = self.working_copy
        return wc.dirty and wc.save_status is SaveStatus.SAVING and not self._exit_confirmed

    def request_exit(self, confirm: Callable[[str], bool]) -> bool:
        """Ask ``confirm`` before leaving with unsaved edits.

        Returns True when exit may proceed. Once the user has confirmed,
        later calls return True without asking again.
        """
        if not self.needs_exit_confirmation:
            return True
        if confirm(EXIT_WARNING):
            self._exit_confirmed = True
            return True
        return False

    # ------------------------------------------------------- share and flush

    async def flush(self) -> None:
        """Cancel the debounce timer and save right away, waiting for the result."""
        self._check_editable()
        if self._timer.cancel() or self.working_copy.dirty:
            await self._dispatch()
        await self._guard.idle()

    async def share(self, clipboard: Clipboard | None = None) -> ShareResult:
        """Produce the shareable address and copy it to the clipboard.

        An unsaved wall is created first, bypassing the debounce timer.

        Raises
        ------
        ShareUnavailableError
            If no remote wall exists after the forced create (blank wall or
            a failed request).
        """
        self._check_editable()
        if self.working_copy.remote_id is None:
            self._timer.cancel()
            await self._dispatch()
        collection_id = self.working_copy.remote_id
        if collection_id is None:
            if self.working_copy.has_text():
                raise ShareUnavailableError("Could not save this wall; try sharing again")
            raise ShareUnavailableError("Add some text before sharing this wall")

        url = self.address.share_url(collection_id)
        clipboard = clipboard if clipboard is not None else SystemClipboard()
        try:
            clipboard.copy(url)
            copied = True
        except ClipboardUnavailable as exc:
            logger.info("clipboard unavailable (%s); showing address instead", exc)
            copied = False
        return ShareResult(url=url, collection_id=collection_id, copied=copied)

    async def aclose(self) -> None:
        """Disarm the timer and wait for anything already in flight."""
        self._timer.cancel()
        await self._timer.wait()
        await self._guard.idle()

    # -------------------------------------------------------------- internals

    async def _on_timer(self) -> None:
        await self._guard.run(self._save)

    async def _dispatch(self) -> None:
        if not await self._guard.run(self._save):
            await self._guard.idle()

    async def _save(self) -> None:
        wc = self.working_copy
        revision = self._revision
        notes = [n.model_copy() for n in wc.notes]
        remote_id = wc.remote_id
        self._set_state(EngineState.SAVING)

        if remote_id is None:
            if not wc.has_text():
                logger.debug("nothing to create; skipping network call")
                self._settle_success(revision, sent=False)
                return
            created = await settle(self.transport.create(notes))
            if created.is_ok():
                record = created.unwrap()
                wc.remote_id = record.id
                self.address.show(record.id)
                logger.info("created wall %s", record.id)
                self._settle_success(revision)
            else:
                self._settle_failure("create", created.unwrap_err(), revision)
            return

        if notes:
            replaced = await settle(self.transport.replace(remote_id, notes))
            if replaced.is_ok():
                self._settle_success(revision)
            else:
                self._settle_failure("replace", replaced.unwrap_err(), revision)
            return

        removed = await settle(self.transport.remove(remote_id))
        if removed.is_err():
            self._settle_failure("remove", removed.unwrap_err(), revision)
            return
        logger.info("removed wall %s", remote_id)
        wc.remote_id = None
        self.address.reset()
        if not wc.notes:
            wc.notes = [blank_note()]
        self._settle_success(revision)

    def _settle_success(self, revision: int, sent: bool = True) -> None:
        wc = self.working_copy
        if sent:
            wc.last_saved_at = self._clock()
        if revision == self._revision:
            wc.dirty = False
            self._settle(SaveStatus.SAVED)
        else:
            self._settle(SaveStatus.SAVING)

    def _settle_failure(self, action: str, error: Exception, revision: int) -> None:
        logger.warning("%s failed: %s", action, error)
        if revision != self._revision and (self._timer.pending or self._guard.has_pending):
            # a newer edit is already queued to try again
            self._settle(SaveStatus.SAVING)
        else:
            self._settle(SaveStatus.ERROR)

    def _settle(self, status: SaveStatus, rest: EngineState | None = None) -> None:
        self.working_copy.save_status = status
        if self._timer.pending or self._guard.has_pending:
            state = EngineState.DEBOUNCING
        elif rest is not None:
            state = rest
        elif status is SaveStatus.ERROR:
            state = EngineState.ERROR
        else:
            state = EngineState.IDLE
        self._set_state(state, force_notify=True)

    def _set_state(self, state: EngineState, force_notify: bool = False) -> None:
        changed = state is not self._state
        if changed:
            logger.debug("state %s -> %s", self._state.value, state.value)
        self._state = state
        if (changed or force_notify) and self._on_change is not None:
            self._on_change(self)

    def _mark_dirty(self) -> None:
        self._revision += 1
        self.working_copy.dirty = True
        self.working_copy.save_status = SaveStatus.SAVING
        self._timer.schedule()
        if self._guard.busy:
            self._set_state(EngineState.SAVING, force_notify=True)
        else:
            self._set_state(EngineState.DEBOUNCING, force_notify=True)

    def _check_editable(self) -> None:
        if self._state in (EngineState.UNINITIALIZED, EngineState.LOADING):
            raise EngineBusyError(f"cannot edit while {self._state.value}")

    def _edit(self, note_id: int | str, **changes: Any) -> None:
        self._check_editable()
        index = self._index_of(note_id)
        current = self.working_copy.notes[index]
        self.working_copy.notes[index] = _build_note({**current.model_dump(), **changes})
        self._mark_dirty()

    def _index_of(self, note_id: int | str) -> int:
        for i, note in enumerate(self.working_copy.notes):
            if note.id == note_id:
                return i
        raise KeyError(f"No note with id {note_id!r}")

    def _next_note_id(self) -> int:
        numeric = [n.id for n in self.working_copy.notes if isinstance(n.id, int)]
        return max(numeric, default=0) + 1

    def _adopt(self, notes: list[Note]) -> None:
        self.working_copy.notes = [n.model_copy() for n in notes]

    def _reset_blank(self) -> None:
        wc = self.working_copy
        wc.notes = [blank_note()]
        wc.remote_id = None
        wc.dirty = False


__all__ = [
    "EXIT_WARNING",
    "EngineState",
    "SaveStatus",
    "ShareResult",
    "SyncEngine",
    "WorkingCopy",
    "blank_note",
]
