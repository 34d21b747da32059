from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from event_analytics.config import EVENT_SCHEMA_PATH
from event_analytics.event import EVENT_TYPE_ORDER_COMPLETED
from event_analytics.exceptions import StoreError
from event_analytics.main import app, get_event_schema, get_store
from event_analytics.schema import EventSchema


class InMemoryStore:
    """Keeps payloads in a list; set `fail` to make every call raise StoreError."""

    def __init__(self):
        self.payloads = []
        self.fail = False

    def insert_event(self, payload):
        if self.fail:
            raise StoreError("insert failed: simulated outage")
        self.payloads.append(dict(payload))

    def find_order_completed(self, user_id):
        if self.fail:
            raise StoreError("query failed: simulated outage")
        return [
            dict(p)
            for p in self.payloads
            if p.get("type") == EVENT_TYPE_ORDER_COMPLETED and p.get("userId") == user_id
        ]

    def close(self):
        return None


@pytest.fixture
def event_schema():
    return EventSchema.load(EVENT_SCHEMA_PATH)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store, event_schema):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_event_schema] = lambda: event_schema
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
