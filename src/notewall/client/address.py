"""Visible, shareable address of the wall being edited.

The address is ``<base>/`` for an unsaved wall and ``<base>/<id>`` once the
wall exists remotely. Changing it never reloads anything: `show()` and
`reset()` behave like a browser's ``history.replaceState`` and are recorded
in `history` for inspection.
"""

from __future__ import annotations

from urllib.parse import urlsplit


def extract_candidate(address: str) -> str:
    """Return the first path segment of a URL or bare path (``""`` if none)."""
    path = urlsplit(address).path if "://" in address else address.split("?", 1)[0]
    for part in path.split("/"):
        if part:
            return part
    return ""


class AddressBar:
    """In-memory stand-in for the browser location bar."""

    def __init__(self, base_url: str = "http://127.0.0.1:8000", initial: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.current = initial if initial is not None else self.root
        self.history: list[str] = []

    @property
    def root(self) -> str:
        return f"{self.base_url}/"

    @property
    def segment(self) -> str:
        """First path segment of the current address."""
        return extract_candidate(self.current)

    def share_url(self, collection_id: str) -> str:
        return f"{self.base_url}/{collection_id}"

    def show(self, collection_id: str) -> None:
        """Point the address at ``collection_id`` without reloading."""
        self._replace(self.share_url(collection_id))

    def reset(self) -> None:
        """Return the address to its root form."""
        self._replace(self.root)

    def _replace(self, address: str) -> None:
        if address != self.current:
            self.current = address
            self.history.append(address)


__all__ = ["AddressBar", "extract_candidate"]
