import pytest
from fastapi.testclient import TestClient

from event_analytics import main
from event_analytics.store import create_store


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError):
        create_store("sqlite")


def test_startup_loads_schema_and_store(monkeypatch, store):
    monkeypatch.setattr(main, "create_store", lambda: store)
    monkeypatch.setattr(main, "store", None)
    monkeypatch.setattr(main, "event_schema", None)

    with TestClient(main.app) as client:
        resp = client.post(
            "/v1/events",
            content=b'{"type":"Order Completed","timestamp":"2019-10-29T03:03:54Z","userId":"u","revenue":4}',
        )
        assert resp.status_code == 200
        assert client.get("/v1/ltv", params={"userId": "u"}).text == "4.000000"

    assert main.store is store
