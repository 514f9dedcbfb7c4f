"""
Unit tests for the in-memory collection store.

Scenarios
---------
1. **Create**: fresh, well-formed identifiers; empty/non-array payloads rejected.
2. **Read**: round-trip fidelity and access-time bookkeeping.
3. **Replace / Remove**: empty replacements rejected, double removal is 404.
4. **Diagnostics**: counts and the recently accessed list.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from notewall.core.errors import AllocationError, NotFoundError, ValidationError
from notewall.core.identifiers import IDENTIFIER_PATTERN
from notewall.core.store import CollectionStore

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def stepping_clock(step: timedelta = timedelta(seconds=1)) -> Callable[[], datetime]:
    """A clock that advances by `step` on every call."""
    ticks = {"now": T0}

    def _now() -> datetime:
        ticks["now"] += step
        return ticks["now"]

    return _now


@pytest.fixture  # type: ignore[misc]
def store() -> CollectionStore:
    return CollectionStore(clock=stepping_clock())


def texts(record: Any) -> list[str]:
    return [n.text for n in record.notes]


def test_create_returns_fresh_valid_id(store: CollectionStore) -> None:
    seen: set[str] = set()
    for i in range(50):
        before = set(store.ids())
        record = store.create([{"text": f"note {i}"}])
        assert IDENTIFIER_PATTERN.fullmatch(record.id)
        assert record.id not in before
        seen.add(record.id)
    assert len(seen) == 50 == len(store)


def test_create_stamps_times(store: CollectionStore) -> None:
    record = store.create([{"text": "a"}])
    assert record.created_at == record.last_accessed


@pytest.mark.parametrize("payload", [None, "notes", {"text": "a"}, 3])
def test_create_rejects_non_array(store: CollectionStore, payload: Any) -> None:
    with pytest.raises(ValidationError, match="array"):
        store.create(payload)
    assert len(store) == 0


def test_create_rejects_empty(store: CollectionStore) -> None:
    with pytest.raises(ValidationError, match="empty"):
        store.create([])


def test_create_rejects_bad_note(store: CollectionStore) -> None:
    with pytest.raises(ValidationError):
        store.create([{"text": "a", "color": "chartreuse"}])


def test_round_trip_preserves_order_and_fields(store: CollectionStore) -> None:
    notes = [
        {"id": 1, "text": "first", "color": "pink", "x": 10, "y": 20},
        {"id": 2, "text": "second", "color": "blue", "x": 30, "y": 40},
        {"id": "tok", "text": "third", "pinned": True},
    ]
    created = store.create(notes)
    fetched = store.read(created.id)

    dumped = [n.model_dump() for n in fetched.notes]
    assert [n["text"] for n in dumped] == ["first", "second", "third"]
    assert dumped[0] == {"id": 1, "text": "first", "color": "pink", "x": 10, "y": 20}
    assert dumped[2]["pinned"] is True, "unknown note keys survive a round-trip"


def test_reads_change_only_last_accessed(store: CollectionStore) -> None:
    created = store.create([{"text": "a"}, {"text": "b"}])
    first = store.read(created.id)
    second = store.read(created.id)

    assert first.notes == second.notes == created.notes
    assert created.last_accessed < first.last_accessed < second.last_accessed
    assert second.created_at == created.created_at


def test_last_accessed_never_decreases() -> None:
    store = CollectionStore(clock=stepping_clock(timedelta(seconds=-5)))
    created = store.create([{"text": "a"}])
    assert store.read(created.id).last_accessed == created.last_accessed


def test_returned_records_are_copies(store: CollectionStore) -> None:
    created = store.create([{"text": "a"}])
    created.notes[0].text = "tampered"
    assert texts(store.read(created.id)) == ["a"]


def test_read_rejects_malformed_id(store: CollectionStore) -> None:
    with pytest.raises(ValidationError):
        store.read("NOT-AN-ID")


def test_read_unknown_id(store: CollectionStore) -> None:
    with pytest.raises(NotFoundError):
        store.read("zzzzzzzz")


def test_replace_overwrites(store: CollectionStore) -> None:
    created = store.create([{"text": "a"}])
    replaced = store.replace(created.id, [{"text": "a"}, {"text": "b"}])

    assert texts(replaced) == ["a", "b"]
    assert texts(store.read(created.id)) == ["a", "b"]
    assert replaced.last_accessed > created.last_accessed


def test_replace_with_empty_is_rejected(store: CollectionStore) -> None:
    created = store.create([{"text": "a"}])
    with pytest.raises(ValidationError):
        store.replace(created.id, [])
    assert texts(store.read(created.id)) == ["a"]


def test_replace_unknown_id(store: CollectionStore) -> None:
    with pytest.raises(NotFoundError):
        store.replace("zzzzzzzz", [{"text": "a"}])


def test_remove_twice(store: CollectionStore) -> None:
    created = store.create([{"text": "a"}, {"text": "b"}])

    summary = store.remove(created.id)
    assert summary.id == created.id
    assert summary.notes_count == 2
    assert created.id not in store

    with pytest.raises(NotFoundError):
        store.remove(created.id)


def test_remove_rejects_malformed_id(store: CollectionStore) -> None:
    with pytest.raises(ValidationError):
        store.remove("short")


def test_allocation_cap_surfaces() -> None:
    store = CollectionStore(max_attempts=2, generator=lambda: "aaaaaaaa")
    store.create([{"text": "a"}])
    with pytest.raises(AllocationError):
        store.create([{"text": "b"}])
    assert len(store) == 1


def test_diagnostics_counts_and_recent(store: CollectionStore) -> None:
    ids = [store.create([{"text": str(i)}] * (i + 1)).id for i in range(7)]
    store.read(ids[0])

    diag = store.diagnostics()

    assert diag.collections == 7
    assert diag.total_notes == sum(range(1, 8))
    assert len(diag.recent) == 5
    assert diag.recent[0].id == ids[0], "most recently read wall comes first"
    assert [r.id for r in diag.recent[1:]] == [ids[6], ids[5], ids[4], ids[3]]
    assert diag.recent[0].notes_count == 1


def test_diagnostics_empty_store(store: CollectionStore) -> None:
    diag = store.diagnostics()
    assert (diag.collections, diag.total_notes, diag.recent) == (0, 0, [])
