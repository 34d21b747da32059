"""HTTP client for the analytics server.

Handy for scripts and for other services that emit events. Every function
accepts an optional `httpx.Client` so callers can reuse a connection pool (or
pass FastAPI's TestClient); without one, a short-lived client is opened against
ANALYTICS_API_URL.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from .config import ANALYTICS_API_URL
from .event import BaseEvent, event_to_dict


@contextmanager
def _session(client: httpx.Client | None) -> Iterator[httpx.Client]:
    if client is not None:
        yield client
        return

    with httpx.Client(base_url=ANALYTICS_API_URL, timeout=10.0) as session:
        yield session


def send_raw_event(payload: dict[str, Any], client: httpx.Client | None = None) -> dict:
    """Post an event payload as-is and return the stored payload.

    Raises:
        httpx.HTTPStatusError on 400 (invalid event) or 500 (server/storage failure).
        httpx.HTTPError on connection failures and timeouts.
    """
    with _session(client) as session:
        resp = session.post("/v1/events", json=payload)
        resp.raise_for_status()
        return resp.json()


def send_event(event: BaseEvent, client: httpx.Client | None = None) -> dict:
    """Encode a typed event (see event_analytics.event) and post it."""
    return send_raw_event(event_to_dict(event), client)


def get_ltv(user_id: str, client: httpx.Client | None = None) -> float:
    """Return a user's lifetime value."""
    with _session(client) as session:
        resp = session.get("/v1/ltv", params={"userId": user_id})
        resp.raise_for_status()
        return float(resp.text)
