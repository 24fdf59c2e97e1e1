"""
Process change store registry.

The backend is chosen once per app from ``STORE_BACKEND`` ("sql" or
"memory") and kept in ``app.extensions``; services fetch it through
``get_store()``.

Usage:
    from process_tracker.store import get_store
    store = get_store()
"""

import logging

from flask import current_app

from process_tracker.store.base import ProcessChangeStore
from process_tracker.store.memory import InMemoryProcessChangeStore
from process_tracker.store.sql import SqlProcessChangeStore

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "process_change_store"

BACKENDS = {
    "sql": SqlProcessChangeStore,
    "memory": InMemoryProcessChangeStore,
}


def init_store(app, backend: str | None = None) -> ProcessChangeStore:
    """Instantiate the configured backend and attach it to the app."""
    backend = (backend or app.config.get("STORE_BACKEND") or "sql").lower()
    store_cls = BACKENDS.get(backend)
    if store_cls is None:
        raise RuntimeError(
            f"Unknown STORE_BACKEND '{backend}'; expected one of: {', '.join(sorted(BACKENDS))}"
        )
    store = store_cls()
    app.extensions[_EXTENSION_KEY] = store
    app.logger.info("Process change store: %s", store.name)
    return store


def get_store() -> ProcessChangeStore:
    return current_app.extensions[_EXTENSION_KEY]


__all__ = [
    "BACKENDS",
    "InMemoryProcessChangeStore",
    "ProcessChangeStore",
    "SqlProcessChangeStore",
    "get_store",
    "init_store",
]
