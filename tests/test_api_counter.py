"""
Tests for the HTTP API (counter store and live session endpoints).
"""

import pytest
from fastapi.testclient import TestClient

from people_counter.algorithms.counting.line import LineCounter, LineCounterConfig
from people_counter.runtime.session import CountingSession
from people_counter.sync.reconciler import SyncReconciler
from people_counter.tracking.tracker import PersonTracker
from people_counter.web.app import create_app
from people_counter.web.state import state

from conftest import make_body


@pytest.fixture(autouse=True)
def clean_state():
    state.clear()
    yield
    state.clear()


@pytest.fixture
def client(db):
    return TestClient(create_app(database=db))


@pytest.fixture
def live_session(db):
    reconciler = SyncReconciler(db, debounce_seconds=30.0)
    reconciler.start()
    session = CountingSession(
        tracker=PersonTracker(),
        counter=LineCounter(LineCounterConfig(line_x=0.5)),
        reconciler=reconciler,
    )
    yield session
    reconciler.stop()


class TestCounterEndpoints:

    def test_get_counter(self, client):
        response = client.get("/api/counter")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["entrances"] == 0
        assert body["data"]["exits"] == 0
        assert body["data"]["currentInside"] == 0

    def test_put_counter(self, client, db):
        response = client.put("/api/counter", json={"entrances": 12, "exits": 5})
        assert response.status_code == 200
        assert response.json()["data"]["currentInside"] == 7
        assert db.read().entrances == 12
        assert db.count_history() == 0

    def test_put_counter_rejects_negative(self, client):
        response = client.put("/api/counter", json={"entrances": -1, "exits": 0})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_put_counter_requires_both_fields(self, client):
        response = client.put("/api/counter", json={"entrances": 3})
        assert response.status_code == 400

    def test_increment(self, client, db):
        response = client.post("/api/counter/increment", json={"type": "entrance"})
        assert response.status_code == 200
        assert response.json()["data"]["entrances"] == 1
        assert db.count_history("entrance") == 1

    def test_increment_invalid_type(self, client, db):
        response = client.post("/api/counter/increment", json={"type": "sideways"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "entrance" in body["error"]
        assert db.count_history() == 0

    def test_reset(self, client, db):
        db.overwrite(4, 1)
        db.increment("exit")
        response = client.post("/api/counter/reset")
        assert response.status_code == 200
        assert response.json()["data"]["entrances"] == 0
        assert db.count_history() == 1

    def test_history(self, client, db):
        db.append_history("entrance", 1000.0)
        db.append_history("exit", 2000.0)
        db.append_history("entrance", 3000.0)

        response = client.get("/api/counter/history", params={"from": 1500, "limit": 5})
        assert response.status_code == 200
        data = response.json()["data"]
        assert [(e["event_type"], e["timestamp"]) for e in data] == [
            ("entrance", 3000.0),
            ("exit", 2000.0),
        ]

    def test_stats(self, client, db):
        db.append_history("entrance", 1700000000.0)
        response = client.get("/api/counter/stats", params={"period": "month"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["entrances"] == 1

    def test_stats_invalid_period(self, client):
        response = client.get("/api/counter/stats", params={"period": "fortnight"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_store_unavailable(self, client, db):
        db.close()
        response = client.get("/api/counter")
        assert response.status_code == 503
        assert response.json()["success"] is False

    def test_no_database_configured(self):
        client = TestClient(create_app())
        assert client.get("/api/counter").status_code == 503


class TestSessionEndpoints:

    def test_no_session(self, client):
        assert client.get("/api/session").status_code == 404
        assert client.post("/api/session/reset").status_code == 404

    def test_get_session(self, db, live_session):
        client = TestClient(create_app(database=db, counting_session=live_session))
        live_session.process_frame([make_body(0.4)], 1.0)
        live_session.process_frame([make_body(0.5)], 2.0)

        data = client.get("/api/session").json()["data"]
        assert data["entrances"] == 1
        assert data["mode"] == "torso"

    def test_set_mode(self, db, live_session):
        client = TestClient(create_app(database=db, counting_session=live_session))
        response = client.put("/api/session/mode", json={"mode": "skeleton"})
        assert response.status_code == 200
        assert response.json()["data"]["mode"] == "skeleton"
        assert live_session.mode.value == "skeleton"

    def test_set_invalid_mode(self, db, live_session):
        client = TestClient(create_app(database=db, counting_session=live_session))
        response = client.put("/api/session/mode", json={"mode": "hands"})
        assert response.status_code == 400

    def test_reset_session(self, db, live_session):
        client = TestClient(create_app(database=db, counting_session=live_session))
        live_session.process_frame([make_body(0.4)], 1.0)
        live_session.process_frame([make_body(0.5)], 2.0)
        live_session.reconciler.flush()
        assert db.read().entrances == 1

        response = client.post("/api/session/reset")

        assert response.status_code == 200
        assert response.json()["data"]["entrances"] == 0
        assert db.read().entrances == 0


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["store"] == "ready"
    assert data["session"] is None
