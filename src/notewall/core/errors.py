"""Error taxonomy shared by the store, the HTTP API and the sync client.

Mapping
-------
- `ValidationError`   -> HTTP 400 (malformed identifier or note payload)
- `NotFoundError`     -> HTTP 404 (an expected outcome, not a fault)
- `AllocationError`   -> HTTP 500 (identifier space exhausted the retry cap)
- `TransportFailure`  -> client-side only; surfaces as save status ``error``

The remaining classes are raised by the client-side edit surface.
"""

from __future__ import annotations


class NoteWallError(Exception):
    """Base class for every error raised by NoteWall itself."""


class ValidationError(NoteWallError):
    """A request carried a malformed identifier or note payload."""


class NotFoundError(NoteWallError):
    """No collection is stored under the requested identifier."""

    def __init__(self, collection_id: str) -> None:
        super().__init__(f"Collection {collection_id} not found")
        self.collection_id = collection_id


class AllocationError(NoteWallError):
    """No free identifier was found within the configured number of draws."""


class TransportFailure(NoteWallError):
    """The remote store could not be reached or answered unexpectedly."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EngineBusyError(NoteWallError):
    """The working copy cannot be edited while the initial load is running."""


class NoteNotBlankError(NoteWallError):
    """Only blank notes may be removed from the working copy."""


class ShareUnavailableError(NoteWallError):
    """A shareable address could not be produced (nothing saved remotely)."""


class ClipboardUnavailable(NoteWallError):
    """No system clipboard could be reached."""


__all__ = [
    "AllocationError",
    "ClipboardUnavailable",
    "EngineBusyError",
    "NoteNotBlankError",
    "NoteWallError",
    "NotFoundError",
    "ShareUnavailableError",
    "TransportFailure",
    "ValidationError",
]
