"""
Cursor-based pagination over ``GET /observations``.

Uses the recommended ``id_above`` + ``order_by=id`` + ``order=asc`` strategy,
so pages arrive in strictly increasing observation id order and no page
number ever has to be recomputed when the total is inaccurate.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from natura_map.datasources.inaturalist import client
from natura_map.errors import CancelledError, InvalidQueryError, TransportError

if TYPE_CHECKING:
    from natura_map.datasources.inaturalist.scheduler import RequestScheduler
    from natura_map.schemas import Query

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal checked between pages."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` if ``cancel()`` has been called."""
        if self._event.is_set():
            raise CancelledError("Search cancelled")


@dataclass(frozen=True)
class PageProgress:
    """Running counters passed along with every page."""

    fetched: int
    total: int


OnPage = Callable[[list[dict[str, Any]], PageProgress], None]


class Paginator:
    """Drives repeated scheduler calls for one query."""

    def __init__(
        self,
        scheduler: RequestScheduler,
        *,
        per_page: int = client.MAX_PER_PAGE,
        max_results: int = client.MAX_RESULTS,
    ) -> None:
        self.scheduler = scheduler
        self.per_page = per_page
        self.max_results = max_results

    def page_params(self, query: Query, id_above: int = 0) -> dict[str, Any]:
        """Request parameters for the page after ``id_above`` (0 = first page)."""
        params = query.to_api_params()
        params["per_page"] = self.per_page
        params["order"] = "asc"
        params["order_by"] = "id"
        if id_above > 0:
            params["id_above"] = id_above
        return params

    def fetch_all(
        self,
        query: Query,
        on_page: OnPage,
        token: CancellationToken | None = None,
    ) -> int:
        """
        Fetch every page of ``query``, calling ``on_page`` after each one.

        Args:
            query: A dispatchable query.
            on_page: Called synchronously with ``(raw_records, PageProgress)``.
            token: Checked before each request; cancellation never interrupts
                a page that is already in flight.

        Returns:
            Number of raw records fetched.

        Raises:
            InvalidQueryError: The query has no taxon or place.
            CancelledError: ``token`` was cancelled before a page request.
            ThrottledError, TransportError: Propagated from the scheduler, or
                raised here for a page whose ids do not advance the cursor.
        """
        if not query.is_dispatchable:
            raise InvalidQueryError("Query needs a taxon id, taxon name or place id")

        fetched = 0
        id_above = 0
        total: int | None = None

        while True:
            if token is not None:
                token.raise_if_cancelled()

            data = self.scheduler.schedule(client.OBSERVATIONS, self.page_params(query, id_above))

            if total is None:
                total = min(int(data.get("total_results") or 0), self.max_results)
                logger.debug("%s: %d results advertised", query.describe(), total)

            results: list[dict[str, Any]] = data.get("results") or []
            if not results:
                break

            # Page size, not the advertised total, decides when the last page was seen.
            full_page = len(results) >= self.per_page
            remaining = self.max_results - fetched
            if len(results) > remaining:
                results = results[:remaining]

            fetched += len(results)
            on_page(results, PageProgress(fetched=fetched, total=total))

            if fetched >= total or fetched >= self.max_results or not full_page:
                break
            id_above = _last_id(results, id_above)

        return fetched


def _last_id(results: list[dict[str, Any]], id_above: int) -> int:
    """Cursor for the next page: the id of the last record that has one.

    Records without an id are skipped (the normalizer drops them too).  A page
    with no usable id, or one that does not move past ``id_above``, would
    request the same page forever.
    """
    for record in reversed(results):
        if isinstance(record, dict) and record.get("id") is not None:
            last = int(record["id"])
            if last <= id_above:
                break
            return last
    raise TransportError(f"Observation page does not advance past id {id_above}")
