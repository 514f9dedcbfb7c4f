"""Wire and storage contracts for notes and walls (collections).

This module defines the Pydantic v2 models shared by the store, the HTTP API
and the client transport:

- `Note`             : one sticky note (`id`, `text`, `color`, `x`, `y`).
- `CollectionRecord` : a stored wall (`id`, `notes`, `createdAt`, `lastAccessed`).
- `RemovalSummary`   : the body returned after a wall is deleted.
- `CollectionDigest` : one row of the diagnostics "recent" list.
- `StoreDiagnostics` : aggregate counts reported by `/api/health`.

Field naming
------------
Python attributes are snake_case; the JSON wire form is camelCase. Every
model sets `populate_by_name=True` so both spellings validate, and callers
serialize with `model_dump(by_alias=True)`.

Notes
-----
`Note` allows extra keys: whatever a client stores is handed back verbatim
on the next read.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from notewall.core.errors import ValidationError
from notewall.core.identifiers import IDENTIFIER_REGEX

NoteColor = Literal["yellow", "pink", "blue", "green", "orange", "purple"]
NOTE_COLORS: tuple[str, ...] = ("yellow", "pink", "blue", "green", "orange", "purple")
DEFAULT_COLOR: NoteColor = "yellow"

CollectionId = str


class Note(BaseModel):
    """A single sticky note placed on a wall."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = Field(default=None, description="Numeric or opaque token")
    text: str = Field(default="", description="Free text shown on the note")
    color: NoteColor = Field(default=DEFAULT_COLOR, description="Palette value")
    x: float = Field(default=0, description="Horizontal position")
    y: float = Field(default=0, description="Vertical position")

    @property
    def is_blank(self) -> bool:
        """True when the note carries no visible text."""
        return not self.text.strip()


class CollectionRecord(BaseModel):
    """A wall as held by the collection store."""

    model_config = ConfigDict(populate_by_name=True)

    id: CollectionId = Field(pattern=IDENTIFIER_REGEX)
    notes: list[Note] = Field(min_length=1)
    created_at: datetime = Field(alias="createdAt")
    last_accessed: datetime = Field(alias="lastAccessed")


class RemovalSummary(BaseModel):
    """Response body for a successful delete."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Collection deleted successfully"
    id: CollectionId
    notes_count: int = Field(alias="notesCount", ge=0)


class CollectionDigest(BaseModel):
    """Reduced view of a wall used by diagnostics."""

    model_config = ConfigDict(populate_by_name=True)

    id: CollectionId
    notes_count: int = Field(alias="notesCount", ge=0)
    last_accessed: datetime = Field(alias="lastAccessed")


class StoreDiagnostics(BaseModel):
    """Aggregate view over the whole store."""

    model_config = ConfigDict(populate_by_name=True)

    collections: int = Field(ge=0)
    total_notes: int = Field(alias="totalNotes", ge=0)
    recent: list[CollectionDigest] = Field(default_factory=list)


class HealthReport(StoreDiagnostics):
    """`GET /api/health` body: liveness plus store diagnostics."""

    status: Literal["ok"] = "ok"
    environment: str
    version: str


_NOTE_LIST = TypeAdapter(list[Note])


def parse_notes(payload: Any) -> list[Note]:
    """Validate an incoming notes payload into a non-empty list of `Note`.

    Raises
    ------
    ValidationError
        If ``payload`` is not a list/tuple, is empty, or any element fails
        `Note` validation.
    """
    if not isinstance(payload, list | tuple):
        raise ValidationError("Notes must be an array")
    if not payload:
        raise ValidationError("Notes array cannot be empty")
    try:
        return _NOTE_LIST.validate_python(
            [n.model_dump() if isinstance(n, Note) else n for n in payload]
        )
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(f"Invalid note at {where}: {first.get('msg')}") from exc


def dump_notes(notes: Iterable[Note]) -> list[dict[str, Any]]:
    """Serialize notes into plain JSON-ready dicts."""
    return [n.model_dump(mode="json") for n in notes]


__all__ = [
    "CollectionDigest",
    "CollectionId",
    "CollectionRecord",
    "DEFAULT_COLOR",
    "HealthReport",
    "NOTE_COLORS",
    "Note",
    "NoteColor",
    "RemovalSummary",
    "StoreDiagnostics",
    "dump_notes",
    "parse_notes",
]
