"""Shared fakes: a manual clock, a fake HTTP session and a fake observations API."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

Handler = Callable[[str, dict[str, Any]], Mock]


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self.now += seconds

    def advance(self, seconds: float) -> None:
        with self._lock:
            self.now += seconds


def make_response(status: int = 200, payload: dict[str, Any] | None = None) -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.json.return_value = payload if payload is not None else {}
    return resp


class FakeSession:
    """Stands in for ``requests.Session``; records every GET with its clock time."""

    def __init__(self, clock: FakeClock, handler: Handler) -> None:
        self.clock = clock
        self.handler = handler
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, params: dict[str, Any] | None = None, **_kwargs: Any) -> Mock:
        params = dict(params or {})
        self.calls.append({"url": url, "params": params, "at": self.clock()})
        return self.handler(url, params)


def observation(obs_id: int, coords: list[float] | None = None, **extra: Any) -> dict[str, Any]:
    """Minimal raw observation as returned by ``GET /observations``."""
    obs: dict[str, Any] = {
        "id": obs_id,
        "geojson": {"type": "Point", "coordinates": coords or [10.0, 20.0]},
        "taxon": {"name": "Vanessa cardui", "rank": "species"},
    }
    obs.update(extra)
    return obs


class FakeObservationsApi:
    """Serves pages of the given sizes with ascending ids, honouring ``id_above``."""

    def __init__(self, page_sizes: list[int], total_results: int | None = None) -> None:
        self.page_sizes = page_sizes
        self.total_results = sum(page_sizes) if total_results is None else total_results
        self.requests: list[dict[str, Any]] = []

    def __call__(self, url: str, params: dict[str, Any]) -> Mock:
        index = len(self.requests)
        self.requests.append(params)
        size = self.page_sizes[index] if index < len(self.page_sizes) else 0
        start = int(params.get("id_above", 0)) + 1
        results = [observation(i) for i in range(start, start + size)]
        return make_response(200, {"total_results": self.total_results, "results": results})
