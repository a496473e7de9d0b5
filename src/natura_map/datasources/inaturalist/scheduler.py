"""
Single-lane request scheduler for the iNaturalist API.

Every outbound call (observation pages, taxon and place autocomplete) is
turned into a ``Ticket`` and appended to one FIFO queue.  A single worker
thread drains the queue, so at most one request is ever in flight, and it
keeps at least ``min_interval`` seconds between the start of two dispatches.

Throttling: on HTTP 429 the worker sleeps ``cooldown`` seconds and retries
the same ticket exactly once.  A second failure goes back to the caller.

The scheduler knows nothing about queries, pages or cancellation.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import requests

from natura_map.datasources.inaturalist import client
from natura_map.errors import ThrottledError, TransportError
from natura_map.services.http import create_session

if TYPE_CHECKING:
    from natura_map.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Ticket:
    """One caller's right to issue one request. Served in submission order."""

    seq: int
    endpoint: str
    params: dict[str, Any]
    future: Future[dict[str, Any]] = field(default_factory=Future)


class RequestScheduler:
    """Serializes, throttles and retries GET requests against one API base."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        api_base: str = client.API_BASE,
        min_interval: float = client.MIN_REQUEST_INTERVAL,
        cooldown: float = client.THROTTLE_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.min_interval = min_interval
        self.cooldown = cooldown
        self._session = session if session is not None else create_session()
        self._clock = clock
        self._sleep = sleep

        self._queue: queue.Queue[Ticket | None] = queue.Queue()
        self._seq = itertools.count(1)
        self._lock = threading.Lock()  # guards worker start/stop, not dispatch
        self._worker: threading.Thread | None = None
        self._closed = False

        # Owned by the worker thread only.
        self._last_dispatch: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> RequestScheduler:
        session = create_session(timeout=settings.http_timeout, user_agent=settings.user_agent)
        return cls(
            session,
            api_base=settings.api_base,
            min_interval=settings.min_request_interval,
            cooldown=settings.throttle_cooldown,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, endpoint: str, params: dict[str, Any] | None = None) -> Future[dict[str, Any]]:
        """Queue a GET request and return a future for its parsed JSON body."""
        with self._lock:
            if self._closed:
                raise RuntimeError("RequestScheduler is closed")
            ticket = Ticket(next(self._seq), endpoint, dict(params or {}))
            self._queue.put(ticket)
            self._ensure_worker()
        return ticket.future

    def schedule(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Queue a GET request and block until its response (or error) arrives.

        Raises:
            ThrottledError: The API answered 429 twice in a row.
            TransportError: Any other non-2xx status or network failure.
        """
        return self.submit(endpoint, params).result()

    def close(self, timeout: float | None = None) -> None:
        """Stop accepting tickets; the worker exits after draining the queue."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker
            self._queue.put(None)
        if worker is not None:
            worker.join(timeout)

    @property
    def pending(self) -> int:
        """Approximate number of tickets waiting for the worker."""
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(
                target=self._run, name="inat-request-scheduler", daemon=True
            )
            self._worker.start()

    def _run(self) -> None:
        while True:
            ticket = self._queue.get()
            if ticket is None:
                return
            if not ticket.future.set_running_or_notify_cancel():
                continue
            try:
                result = self._execute(ticket)
            except Exception as exc:  # noqa: BLE001
                ticket.future.set_exception(exc)
            else:
                ticket.future.set_result(result)

    def _wait_for_slot(self) -> None:
        """Sleep until ``min_interval`` has passed since the previous dispatch."""
        if self._last_dispatch is not None:
            elapsed = self._clock() - self._last_dispatch
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
        self._last_dispatch = self._clock()

    def _execute(self, ticket: Ticket) -> dict[str, Any]:
        self._wait_for_slot()
        resp = self._send(ticket)

        if resp.status_code == client.HTTP_TOO_MANY_REQUESTS:
            logger.warning(
                "Throttled on %s (ticket %d), retrying once in %.1fs",
                ticket.endpoint,
                ticket.seq,
                self.cooldown,
            )
            self._sleep(self.cooldown)
            self._wait_for_slot()
            resp = self._send(ticket)
            if resp.status_code == client.HTTP_TOO_MANY_REQUESTS:
                raise ThrottledError(f"iNaturalist API still throttling {ticket.endpoint}")

        if not resp.ok:
            raise TransportError(
                f"iNaturalist API error: {resp.status_code}", status_code=resp.status_code
            )
        try:
            data: dict[str, Any] = resp.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {ticket.endpoint}") from exc
        return data

    def _send(self, ticket: Ticket) -> requests.Response:
        url = f"{self.api_base}/{ticket.endpoint}"
        logger.debug("GET %s %s (ticket %d)", url, ticket.params, ticket.seq)
        try:
            return self._session.get(url, params=ticket.params)
        except requests.RequestException as exc:
            raise TransportError(f"Request to {ticket.endpoint} failed: {exc}") from exc


@lru_cache
def get_scheduler() -> RequestScheduler:
    """The process-wide lane shared by search and autocomplete."""
    from natura_map.config import get_settings

    return RequestScheduler.from_settings(get_settings())
