"""
Tests for the HTTP counter store client.
"""

import json

import httpx
import pytest

from people_counter.errors import InvalidEventType, StoreUnavailable
from people_counter.sync.client import HttpCounterClient
from people_counter.sync.reconciler import SyncReconciler


def envelope(data, success=True, status_code=200):
    return httpx.Response(status_code, json={"success": success, "data": data})


class RecordingHandler:
    """MockTransport handler that records requests and serves a fixed record."""

    def __init__(self, entrances=0, exits=0):
        self.entrances = entrances
        self.exits = exits
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "PUT" and path == "/api/counter":
            body = json.loads(request.content)
            self.entrances, self.exits = body["entrances"], body["exits"]
        elif request.method == "POST" and path == "/api/counter/reset":
            self.entrances, self.exits = 0, 0
        elif request.method == "POST" and path == "/api/counter/increment":
            if json.loads(request.content)["type"] == "entrance":
                self.entrances += 1
            else:
                self.exits += 1
        elif not (request.method == "GET" and path == "/api/counter"):
            return httpx.Response(404, json={"success": False, "error": "not found"})
        return envelope({
            "entrances": self.entrances,
            "exits": self.exits,
            "currentInside": self.entrances - self.exits,
            "lastUpdated": 1700000000.0,
        })


@pytest.fixture
def handler():
    return RecordingHandler(entrances=10, exits=4)


@pytest.fixture
def client(handler):
    c = HttpCounterClient("http://counter.local:5500/", transport=httpx.MockTransport(handler))
    yield c
    c.close()


class TestHttpCounterClient:

    def test_read(self, client, handler):
        record = client.read()
        assert (record.entrances, record.exits) == (10, 4)
        assert record.current_inside == 6
        assert record.last_updated == 1700000000.0
        assert handler.requests[0].url == "http://counter.local:5500/api/counter"

    def test_overwrite_sends_absolute_totals(self, client, handler):
        record = client.overwrite(12, 5)
        request = handler.requests[-1]
        assert request.method == "PUT"
        assert json.loads(request.content) == {"entrances": 12, "exits": 5}
        assert (record.entrances, record.exits) == (12, 5)

    def test_increment(self, client, handler):
        record = client.increment("exit")
        assert json.loads(handler.requests[-1].content) == {"type": "exit"}
        assert record.exits == 5

    def test_increment_rejects_unknown_type_locally(self, client, handler):
        with pytest.raises(InvalidEventType):
            client.increment("sideways")
        assert handler.requests == []

    def test_reset(self, client, handler):
        record = client.reset()
        assert handler.requests[-1].url.path == "/api/counter/reset"
        assert (record.entrances, record.exits) == (0, 0)


class TestFailures:

    def _client(self, handler):
        return HttpCounterClient("http://counter.local", transport=httpx.MockTransport(handler))

    def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(StoreUnavailable):
            self._client(refuse).read()

    def test_server_error(self):
        client = self._client(lambda request: httpx.Response(500, json={"success": False}))
        with pytest.raises(StoreUnavailable):
            client.overwrite(1, 1)

    def test_unsuccessful_envelope(self):
        client = self._client(
            lambda request: httpx.Response(200, json={"success": False, "error": "db locked"})
        )
        with pytest.raises(StoreUnavailable, match="db locked"):
            client.read()

    def test_invalid_json(self):
        client = self._client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(StoreUnavailable):
            client.read()

    def test_non_object_body(self):
        client = self._client(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(StoreUnavailable):
            client.read()


def test_reconciler_over_http(handler):
    client = HttpCounterClient("http://counter.local", transport=httpx.MockTransport(handler))
    reconciler = SyncReconciler(client, debounce_seconds=30.0)

    assert reconciler.start()
    assert reconciler.snapshot() == (10, 4)

    reconciler.record("entrance")
    reconciler.record("exit")
    assert reconciler.flush()
    reconciler.stop()

    puts = [r for r in handler.requests if r.method == "PUT"]
    assert len(puts) == 1
    assert json.loads(puts[0].content) == {"entrances": 11, "exits": 5}
    client.close()
