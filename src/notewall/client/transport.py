# -----------------------------------------------------------------------------
# Transport layer between the sync engine and the collection store.
#
# The engine only ever sees the `Transport` protocol: four coroutines that
# each perform exactly one request/response exchange.
#
#   create(notes)        -> CollectionRecord     POST   /api/
#   read(id)             -> CollectionRecord     GET    /api/{id}
#   replace(id, notes)   -> CollectionRecord     PUT    /api/{id}
#   remove(id)           -> RemovalSummary       DELETE /api/{id}
#
# Failures are raised, never returned:
#   NotFoundError    - the server answered 404
#   ValidationError  - the server answered 400
#   TransportFailure - connectivity, timeout, 5xx or an undecodable body
#
# `HttpTransport` uses only the standard library (`urllib.request`) and runs
# the blocking exchange in a worker thread. All HTTP goes through `_request()`
# so unit tests can patch that one method and never touch the network.
#
# `StoreTransport` is an in-process loopback straight onto a CollectionStore.
# -----------------------------------------------------------------------------
from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from notewall.core.contracts.note import (
    CollectionRecord,
    Note,
    RemovalSummary,
    StoreDiagnostics,
    dump_notes,
)
from notewall.core.errors import NotFoundError, TransportFailure, ValidationError
from notewall.core.settings import get_logger, load_settings
from notewall.core.store import CollectionStore

logger = get_logger("notewall.transport")


@runtime_checkable
class Transport(Protocol):
    """One remote exchange per call; see module header for the error contract."""

    async def create(self, notes: Sequence[Note]) -> CollectionRecord: ...

    async def read(self, collection_id: str) -> CollectionRecord: ...

    async def replace(self, collection_id: str, notes: Sequence[Note]) -> CollectionRecord: ...

    async def remove(self, collection_id: str) -> RemovalSummary: ...


@dataclass(slots=True)
class HttpTransport:
    """HTTP client for the NoteWall API.

    Parameters
    ----------
    base_url:
        Server root, e.g. ``"http://127.0.0.1:8000"``. The ``/api`` prefix is
        appended per request.
    timeout_seconds:
        Network timeout for each exchange.
    """

    base_url: str
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls, base_url: str | None = None) -> HttpTransport:
        """Build a transport from `NOTEWALL_API_URL` / `NOTEWALL_TRANSPORT_TIMEOUT_SECONDS`."""
        cfg = load_settings()
        return cls(
            base_url=base_url or cfg.api_url,
            timeout_seconds=cfg.transport_timeout_seconds,
        )

    # --------------------------------------------------------------------- #
    # Transport protocol
    # --------------------------------------------------------------------- #
    async def create(self, notes: Sequence[Note]) -> CollectionRecord:
        payload = await self._call("POST", "/api/", dump_notes(notes))
        return CollectionRecord.model_validate(payload)

    async def read(self, collection_id: str) -> CollectionRecord:
        payload = await self._call("GET", f"/api/{collection_id}", None, collection_id)
        return CollectionRecord.model_validate(payload)

    async def replace(self, collection_id: str, notes: Sequence[Note]) -> CollectionRecord:
        payload = await self._call(
            "PUT", f"/api/{collection_id}", dump_notes(notes), collection_id
        )
        return CollectionRecord.model_validate(payload)

    async def remove(self, collection_id: str) -> RemovalSummary:
        payload = await self._call("DELETE", f"/api/{collection_id}", None, collection_id)
        return RemovalSummary.model_validate(payload)

    async def diagnostics(self) -> dict[str, Any]:
        """Fetch `/api/health` (store counts and recent walls)."""
        payload = await self._call("GET", "/api/health", None)
        StoreDiagnostics.model_validate(payload)
        return dict(payload)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #
    async def _call(
        self,
        method: str,
        path: str,
        body: Any,
        collection_id: str | None = None,
    ) -> Any:
        status, payload = await asyncio.to_thread(self._request, method, path, body)

        if 200 <= status < 300:
            return payload
        message = payload.get("error") if isinstance(payload, dict) else None
        if status == 404 and collection_id is not None:
            raise NotFoundError(collection_id)
        if status == 400:
            raise ValidationError(message or "Bad request")
        logger.warning("%s %s answered HTTP %d", method, path, status)
        raise TransportFailure(
            f"{method} {path} failed with HTTP {status}: {message or 'no detail'}",
            status_code=status,
        )

    def _request(self, method: str, path: str, body: Any) -> tuple[int, Any]:
        """Perform one blocking HTTP exchange and decode the JSON answer.

        Returns
        -------
        tuple[int, Any]
            HTTP status code and the decoded JSON body (``None`` when empty).

        Raises
        ------
        TransportFailure
            On connection errors, timeouts, or a body that is not JSON.
        """
        url = self.base_url.rstrip("/") + path
        data = None
        headers = {"Accept": "application/json"}
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                status, raw = resp.status, resp.read()
        except urllib.error.HTTPError as exc:
            status, raw = exc.code, exc.read()
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            logger.warning("%s %s unreachable: %s", method, url, exc)
            raise TransportFailure(f"{method} {url} unreachable: {exc}") from exc

        if not raw:
            return status, None
        try:
            return status, json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TransportFailure(
                f"{method} {url} returned a non-JSON body", status_code=status
            ) from exc


class StoreTransport:
    """In-process transport that calls a `CollectionStore` directly."""

    def __init__(self, store: CollectionStore | None = None) -> None:
        self.store = store if store is not None else CollectionStore()

    async def create(self, notes: Sequence[Note]) -> CollectionRecord:
        return self.store.create(list(notes))

    async def read(self, collection_id: str) -> CollectionRecord:
        return self.store.read(collection_id)

    async def replace(self, collection_id: str, notes: Sequence[Note]) -> CollectionRecord:
        return self.store.replace(collection_id, list(notes))

    async def remove(self, collection_id: str) -> RemovalSummary:
        return self.store.remove(collection_id)


__all__ = ["HttpTransport", "StoreTransport", "Transport"]
