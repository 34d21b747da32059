"""Storage backend selection.

Both backends keep the raw validated payload and can return a user's
"Order Completed" payloads; route handlers only see this interface.
"""

from __future__ import annotations

from typing import Any, Protocol

from .config import EVENT_STORE, POSTGRES_DSN


class EventStore(Protocol):
    def insert_event(self, payload: dict[str, Any]) -> None: ...

    def find_order_completed(self, user_id: str) -> list[dict[str, Any]]: ...

    def close(self) -> None: ...


def create_store(backend: str = EVENT_STORE) -> EventStore:
    """Build the configured store.

    Raises:
        ValueError: `backend` is neither "mongo" nor "postgres".
    """
    if backend == "mongo":
        from .mongo import MongoEventStore, get_collection

        return MongoEventStore(get_collection())

    if backend == "postgres":
        from .postgres import PostgresEventStore

        store = PostgresEventStore(POSTGRES_DSN)
        store.migrate()
        return store

    raise ValueError(f"unknown EVENT_STORE backend: {backend!r}")
