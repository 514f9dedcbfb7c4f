"""NoteWall package bootstrap.

Shareable walls of sticky notes: an in-memory collection store served over
HTTP, plus a client-side sync engine that mirrors a local working copy into it.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
