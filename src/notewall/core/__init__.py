"""Core package initializer for NoteWall.

Holds the pieces shared by the server and the client:
    settings, errors, identifiers, contracts and the collection store.
"""

from __future__ import annotations

__all__ = ["__doc__"]
