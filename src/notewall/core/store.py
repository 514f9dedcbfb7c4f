"""
In-Memory Collection Store.

This module implements the process-wide mapping from wall identifier to
stored wall (`CollectionRecord`).

Responsibilities
----------------
- **Create**: Allocate a fresh identifier and store a non-empty note list.
- **Read**: Return a wall by identifier and refresh its access time.
- **Replace**: Overwrite a wall's notes (last writer wins).
- **Remove**: Delete a wall and report how many notes it held.
- **Diagnostics**: Aggregate counts plus the most recently accessed walls.

Invariants
----------
- Stored note lists are never empty; emptying a wall means removing it.
- `last_accessed` never decreases, even if the wall clock steps backwards.
- Records handed out are copies; mutating them never touches the store.

Note on Persistence
-------------------
This is a volatile memory store. If the server restarts, every wall is lost.
Operations touch exactly one identifier, so a single lock around the mapping
gives per-identifier atomicity.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any, ClassVar

from notewall.core.contracts.note import (
    CollectionDigest,
    CollectionRecord,
    RemovalSummary,
    StoreDiagnostics,
    parse_notes,
)
from notewall.core.errors import NotFoundError, ValidationError
from notewall.core.identifiers import allocate_unique, generate, is_valid_identifier
from notewall.core.settings import get_logger

Clock = Callable[[], datetime]

logger = get_logger("notewall.store")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _check_id(collection_id: str) -> None:
    if not is_valid_identifier(collection_id):
        raise ValidationError(f"Invalid collection id: {collection_id!r}")


class CollectionStore:
    """
    A lock-guarded, dictionary-backed store for walls.
    """

    # Singleton instance placeholder (initialized in app startup)
    _instance: ClassVar[CollectionStore | None] = None

    def __init__(
        self,
        clock: Clock | None = None,
        max_attempts: int | None = None,
        generator: Callable[[], str] = generate,
    ) -> None:
        self._records: dict[str, CollectionRecord] = {}
        self._lock = threading.RLock()
        self._clock: Clock = clock or _utcnow
        self._max_attempts = max_attempts
        self._generator = generator

    @classmethod
    def get_instance(cls) -> CollectionStore:
        """Accessor for the global singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    # ------------------------------------------------------------------ CRUD

    def create(self, notes: Any) -> CollectionRecord:
        """
        Store ``notes`` under a freshly allocated identifier.

        Raises
        ------
        ValidationError
            If ``notes`` is not a non-empty array of valid notes.
        AllocationError
            If no free identifier was found within the retry cap.
        """
        parsed = parse_notes(notes)
        with self._lock:
            collection_id = allocate_unique(
                self._records, max_attempts=self._max_attempts, generator=self._generator
            )
            now = self._clock()
            record = CollectionRecord(
                id=collection_id,
                notes=parsed,
                created_at=now,
                last_accessed=now,
            )
            self._records[collection_id] = record
            logger.info("created %s (%d notes)", collection_id, len(parsed))
            return record.model_copy(deep=True)

    def read(self, collection_id: str) -> CollectionRecord:
        """Return the wall stored under ``collection_id`` and refresh its access time."""
        _check_id(collection_id)
        with self._lock:
            record = self._get(collection_id)
            self._touch(record)
            logger.debug("read %s", collection_id)
            return record.model_copy(deep=True)

    def replace(self, collection_id: str, notes: Any) -> CollectionRecord:
        """Overwrite the notes of an existing wall."""
        parsed = parse_notes(notes)
        _check_id(collection_id)
        with self._lock:
            record = self._get(collection_id)
            record.notes = parsed
            self._touch(record)
            logger.info("replaced %s (%d notes)", collection_id, len(parsed))
            return record.model_copy(deep=True)

    def remove(self, collection_id: str) -> RemovalSummary:
        """Delete a wall and summarize what was removed."""
        _check_id(collection_id)
        with self._lock:
            record = self._get(collection_id)
            del self._records[collection_id]
            logger.info("removed %s (%d notes)", collection_id, len(record.notes))
            return RemovalSummary(id=collection_id, notes_count=len(record.notes))

    def diagnostics(self, limit: int = 5) -> StoreDiagnostics:
        """
        Return aggregate counts and the ``limit`` most recently accessed walls.

        The recent list is ordered newest first.
        """
        with self._lock:
            records = list(self._records.values())
        recent = sorted(records, key=lambda r: r.last_accessed, reverse=True)[: max(limit, 0)]
        return StoreDiagnostics(
            collections=len(records),
            total_notes=sum(len(r.notes) for r in records),
            recent=[
                CollectionDigest(
                    id=r.id,
                    notes_count=len(r.notes),
                    last_accessed=r.last_accessed,
                )
                for r in recent
            ],
        )

    # --------------------------------------------------------------- helpers

    def reset(self) -> None:
        """Drop every stored wall (used by tests and the dev server)."""
        with self._lock:
            self._records.clear()

    def ids(self) -> tuple[str, ...]:
        """Return the stored identifiers, sorted."""
        with self._lock:
            return tuple(sorted(self._records))

    def __contains__(self, collection_id: object) -> bool:
        return collection_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids())

    def _get(self, collection_id: str) -> CollectionRecord:
        record = self._records.get(collection_id)
        if record is None:
            raise NotFoundError(collection_id)
        return record

    def _touch(self, record: CollectionRecord) -> None:
        record.last_accessed = max(record.last_accessed, self._clock())


# Global accessor for convenience
def get_collection_store() -> CollectionStore:
    return CollectionStore.get_instance()


__all__ = ["Clock", "CollectionStore", "get_collection_store"]
