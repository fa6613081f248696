# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from flatwatch.bootstrap import build_runtime
from flatwatch.config import settings
from flatwatch.domain.types import ListingCandidate
from flatwatch.entrypoints.fastapi_app import create_app

from fakes import FakeNotifier, FakeSource, FakeSubmitter, make_memory_engine, no_wait_limiter


@pytest.fixture
def runtime():
    source = FakeSource(
        {
            "berlin": [
                ListingCandidate(external_id="a", title="Cheap", city="Berlin", price=900, rooms=2),
                ListingCandidate(external_id="b", title="Pricey", city="Berlin", price=2500, rooms=2),
            ]
        }
    )
    return build_runtime(
        engine=make_memory_engine(),
        source=source,
        notifier=FakeNotifier(),
        submitter=FakeSubmitter(),
        rate_limiter=no_wait_limiter(),
    )


@pytest.fixture
def client(runtime):
    # engine connects lazily, so all DB work happens on the TestClient loop
    with TestClient(create_app(runtime)) as c:
        yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_mode_get_and_put(client, runtime):
    assert client.get("/mode").json() == {"mode": "off"}

    r = client.put("/mode", json={"mode": "preview"})
    assert r.status_code == 200
    assert r.json() == {"mode": "preview", "previous": "off"}
    assert runtime.mode.current().value == "preview"

    assert client.put("/mode", json={"mode": "yolo"}).status_code == 422


def test_profiles_poll_and_stats(client, runtime):
    r = client.post("/profiles", json={"name": "berlin", "city": "Berlin", "max_price": 1500, "districts": ["Mitte"]})
    assert r.status_code == 200
    created = r.json()
    assert created["id"] >= 1
    assert created["districts"] == ["Mitte"]

    assert [p["name"] for p in client.get("/profiles").json()] == ["berlin"]

    r = client.post("/jobs/poll")
    assert r.status_code == 200
    body = r.json()
    assert body["found"] == 2
    assert body["new"] == 1
    assert body["notified"] == 1
    assert body["contacted"] == 0
    assert runtime.scheduler.notifier.new == ["a"]

    stats = client.get("/stats").json()
    assert stats["listings"]["listings_total"] == 1
    assert stats["listings"]["listings_notified"] == 1
    assert stats["last_result"]["new"] == 1


def test_profile_toggle(client):
    pid = client.post("/profiles", json={"name": "x"}).json()["id"]

    r = client.post(f"/profiles/{pid}/active", json={"active": False})
    assert r.json()["active"] is False
    assert client.get("/profiles", params={"only_active": True}).json() == []

    assert client.post("/profiles/999/active", json={"active": True}).status_code == 404


def test_start_status_stop(client):
    assert client.get("/jobs/status").json()["state"] == "idle"

    r = client.post("/jobs/start")
    assert r.json()["state"] == "running"

    r = client.post("/jobs/stop")
    assert r.json()["state"] == "idle"


def test_api_key_guard(client, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "k3y")

    assert client.get("/mode").status_code == 401
    assert client.get("/mode", headers={"X-API-Key": "k3y"}).status_code == 200
    # health stays open
    assert client.get("/health").status_code == 200
