"""Client-side synchronization: transport, scheduling and the sync engine."""

from __future__ import annotations

from notewall.client.engine import EngineState, ShareResult, SyncEngine
from notewall.client.transport import HttpTransport, StoreTransport, Transport

__all__ = [
    "EngineState",
    "HttpTransport",
    "ShareResult",
    "StoreTransport",
    "SyncEngine",
    "Transport",
]
