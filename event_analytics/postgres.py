"""PostgreSQL storage for events.

Events live in a single table with a `jsonb` payload column:

    events(id bigserial primary key, payload jsonb not null)

The payload is stored as submitted; queries reach into it with `->>`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Optional, Protocol, cast

import psycopg2
from psycopg2.extras import Json

from .event import EVENT_TYPE_ORDER_COMPLETED
from .exceptions import StoreError

logger = logging.getLogger(__name__)

CREATE_EVENTS_TABLE = """
    CREATE TABLE IF NOT EXISTS events (
        id bigserial PRIMARY KEY,
        payload jsonb NOT NULL
    )
"""

CREATE_EVENTS_INDEX = """
    CREATE INDEX IF NOT EXISTS events_type_user_idx
        ON events ((payload->>'type'), (payload->>'userId'))
"""

INSERT_EVENT = "INSERT INTO events (payload) VALUES (%s)"

SELECT_EVENTS_BY_TYPE_AND_USER = """
    SELECT payload
    FROM events
    WHERE payload->>'type' = %s
      AND payload->>'userId' = %s
"""


class CursorProtocol(Protocol):
    def execute(self, sql: str, params: Optional[tuple[object, ...]] = None) -> None: ...

    def fetchall(self) -> list[tuple[object, ...]]: ...

    def close(self) -> None: ...


class ConnectionProtocol(Protocol):
    def cursor(self) -> CursorProtocol: ...

    def commit(self) -> None: ...

    def close(self) -> None: ...


class PostgresEventStore:
    """Event store backed by the `events` table.

    A connection is opened per operation. Pass `connection_factory` to supply
    connections some other way (tests use fakes).
    """

    def __init__(
        self,
        dsn: str = "",
        connection_factory: Optional[Callable[[], ConnectionProtocol]] = None,
    ) -> None:
        self._dsn = dsn
        self._connection_factory = connection_factory

    def _connect(self) -> ConnectionProtocol:
        if self._connection_factory is not None:
            return self._connection_factory()
        if not self._dsn:
            raise ValueError("dsn is required when no connection_factory is provided")
        return cast(ConnectionProtocol, cast(object, psycopg2.connect(self._dsn)))

    def _run(
        self, statements: list[tuple[str, Optional[tuple[object, ...]]]], fetch: bool = False
    ) -> list[tuple[object, ...]]:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            try:
                for sql, params in statements:
                    cursor.execute(sql, params)
                rows = cursor.fetchall() if fetch else []
                conn.commit()
                return rows
            finally:
                cursor.close()
        finally:
            conn.close()

    def migrate(self) -> None:
        """Create the events table and its lookup index if they do not exist."""
        try:
            self._run([(CREATE_EVENTS_TABLE, None), (CREATE_EVENTS_INDEX, None)])
        except psycopg2.Error as e:
            logger.error("[Postgres] Migration failed: %s", e)
            raise StoreError(f"migration failed: {e}") from e

    def insert_event(self, payload: dict[str, Any]) -> None:
        try:
            self._run([(INSERT_EVENT, (Json(payload),))])
        except psycopg2.Error as e:
            logger.error("[Postgres] Insert failed: %s userId=%s", e, payload.get("userId"))
            raise StoreError(f"insert failed: {e}") from e

        logger.info(
            "[Postgres] Inserted %s event for user %s",
            payload.get("type"),
            payload.get("userId"),
        )

    def find_order_completed(self, user_id: str) -> list[dict[str, Any]]:
        """Return the raw payloads of a user's completed orders."""
        try:
            rows = self._run(
                [(SELECT_EVENTS_BY_TYPE_AND_USER, (EVENT_TYPE_ORDER_COMPLETED, user_id))],
                fetch=True,
            )
        except psycopg2.Error as e:
            logger.error("[Postgres] Query failed: %s userId=%s", e, user_id)
            raise StoreError(f"query failed: {e}") from e

        # psycopg2 decodes jsonb into Python objects; other drivers may hand back text.
        return [
            payload if isinstance(payload, dict) else json.loads(cast(str, payload))
            for (payload,) in rows
        ]

    def close(self) -> None:
        return None
