"""
Counter store clients used by the sync reconciler.

The in-process Database already satisfies CounterStoreClient. HttpCounterClient
talks to a remote instance of this service's counter API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Union

import httpx

from people_counter.errors import StoreUnavailable
from people_counter.models.count_event import EventType
from people_counter.models.counter import CounterRecord


class CounterStoreClient(Protocol):
    """Operations the reconciler needs from a counter store."""

    def read(self) -> CounterRecord:
        ...

    def overwrite(self, entrances: int, exits: int) -> Any:
        ...

    def reset(self) -> Any:
        ...


def _record_from_payload(data: Dict[str, Any]) -> CounterRecord:
    return CounterRecord(
        entrances=int(data.get("entrances", 0)),
        exits=int(data.get("exits", 0)),
        last_updated=data.get("lastUpdated"),
    )


class HttpCounterClient:
    """
    Counter store client over HTTP (httpx).

    Expects the {"success": ..., "data": ...} envelope served by web.routes.counter.
    Any transport error, non-2xx status or unsuccessful envelope raises
    StoreUnavailable.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            base_url: Root URL of the remote service (e.g. http://host:5500).
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )
        logging.info(f"HTTP counter client targeting {self.base_url}")

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.request(method, path, json=json)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise StoreUnavailable(f"{method} {path} returned invalid JSON") from e

        if not isinstance(body, dict) or not body.get("success", False):
            error = body.get("error") if isinstance(body, dict) else None
            raise StoreUnavailable(f"{method} {path} rejected: {error or 'unknown error'}")
        return body.get("data")

    def read(self) -> CounterRecord:
        return _record_from_payload(self._request("GET", "/api/counter") or {})

    def overwrite(self, entrances: int, exits: int) -> CounterRecord:
        data = self._request("PUT", "/api/counter", json={"entrances": entrances, "exits": exits})
        return _record_from_payload(data or {})

    def increment(self, event_type: Union[EventType, str]) -> CounterRecord:
        event_type = EventType.parse(event_type)
        data = self._request("POST", "/api/counter/increment", json={"type": event_type.value})
        return _record_from_payload(data or {})

    def reset(self) -> CounterRecord:
        return _record_from_payload(self._request("POST", "/api/counter/reset") or {})

    def close(self) -> None:
        self._client.close()
