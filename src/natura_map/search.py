"""
Search orchestration.

Owns "the current query".  Each ``search()`` call:

1. cancels the in-flight search, if any, and invalidates its publications,
2. rejects queries without a taxon or place (``InvalidQueryError``),
3. serves fresh cache entries as a single terminal update,
4. otherwise pages through the API on a background thread, publishing a
   snapshot of the accumulated records after every page,
5. publishes a terminal update and caches the completed result.

Supersession is last-writer-wins.  Every search gets a generation number and
updates are delivered under the orchestrator lock only while that generation
is current, so once ``search(B)`` has started nothing from A reaches the
caller and A's records are never cached.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from natura_map.datasources.inaturalist import autocomplete
from natura_map.datasources.inaturalist.paginator import (
    CancellationToken,
    PageProgress,
    Paginator,
)
from natura_map.datasources.inaturalist.records import (
    PointRecord,
    ResultSet,
    normalize_observations,
)
from natura_map.errors import CancelledError, InvalidQueryError
from natura_map.schemas import Query, SearchStatus

if TYPE_CHECKING:
    from natura_map.cache import ResultCache
    from natura_map.config import Settings
    from natura_map.datasources.inaturalist.scheduler import RequestScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchUpdate:
    """Status sent alongside every ResultSet snapshot."""

    status: SearchStatus
    query: Query
    fetched: int = 0
    total: int = 0
    cached: bool = False
    error: Exception | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


OnUpdate = Callable[[ResultSet, SearchUpdate], None]


class SearchHandle:
    """A started search. ``wait()`` blocks until it has finished."""

    def __init__(self, query: Query, generation: int) -> None:
        self.query = query
        self.generation = generation
        self.token = CancellationToken()
        self.result: ResultSet | None = None
        self.final: SearchUpdate | None = None
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        self.token.cancel()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the terminal outcome. Returns False on timeout."""
        return self._done.wait(timeout)


class SearchOrchestrator:
    """Runs observation searches, one current query at a time."""

    def __init__(
        self,
        scheduler: RequestScheduler,
        cache: ResultCache | None = None,
        *,
        paginator: Paginator | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.cache = cache
        self.paginator = paginator or Paginator(scheduler)
        self._lock = threading.RLock()
        self._generation = 0
        self._active: SearchHandle | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, scheduler: RequestScheduler | None = None
    ) -> SearchOrchestrator:
        from natura_map.cache import ResultCache
        from natura_map.datasources.inaturalist.scheduler import get_scheduler

        return cls(scheduler or get_scheduler(), ResultCache.from_settings(settings))

    @property
    def active_query(self) -> Query | None:
        with self._lock:
            return self._active.query if self._active is not None else None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, query: Query, on_update: OnUpdate) -> SearchHandle:
        """Start a search for ``query``, superseding any running one.

        ``on_update`` is called while the orchestrator lock is held, and so is
        the cache write for a completed search.  A ``search()`` or ``cancel()``
        from another thread waits for a slow callback or disk write to return.
        The callback may call back into the orchestrator from its own thread
        (the lock is reentrant) but must not wait on another thread that does.
        Cache hits are published on the calling thread before this returns.

        Raises:
            InvalidQueryError: ``query`` has no taxon id, taxon name or place id.
        """
        with self._lock:
            self._generation += 1
            previous, self._active = self._active, None
            if previous is not None and not previous.done:
                logger.info("Superseding search for %s", previous.query.describe())
                previous.cancel()

            if not query.is_dispatchable:
                raise InvalidQueryError("Please enter a taxon or place to search.")

            handle = SearchHandle(query, self._generation)
            self._active = handle

        logger.info("Searching %s", query.describe())

        cached = self.cache.get(query) if self.cache is not None else None
        if cached is not None:
            update = SearchUpdate(
                SearchStatus.COMPLETE,
                query,
                fetched=len(cached),
                total=len(cached),
                cached=True,
            )
            self._finish(handle, cached, update, on_update)
            return handle

        thread = threading.Thread(
            target=self._run,
            args=(handle, on_update),
            name=f"search-{handle.generation}",
            daemon=True,
        )
        thread.start()
        return handle

    def cancel(self) -> None:
        """Cancel the current search; it will publish a ``cancelled`` update."""
        with self._lock:
            if self._active is not None:
                self._active.cancel()

    def search_sync(self, query: Query, on_update: OnUpdate | None = None) -> ResultSet:
        """Run a search and block until it finishes.

        Raises:
            InvalidQueryError, CancelledError, ThrottledError, TransportError
        """
        handle = self.search(query, on_update or _ignore_update)
        handle.wait()
        final = handle.final
        if final is None or final.status is SearchStatus.CANCELLED:
            raise CancelledError(f"Search for {query.describe()} was cancelled")
        if final.status is SearchStatus.ERROR and final.error is not None:
            raise final.error
        return handle.result or ResultSet()

    # ------------------------------------------------------------------
    # Autocomplete (same request lane, never cancelled)
    # ------------------------------------------------------------------

    def suggest_taxa(self, text: str) -> list[autocomplete.TaxonSuggestion]:
        return autocomplete.search_taxa(self.scheduler, text)

    def suggest_places(self, text: str) -> list[autocomplete.PlaceSuggestion]:
        return autocomplete.search_places(self.scheduler, text)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, handle: SearchHandle, on_update: OnUpdate) -> None:
        query = handle.query
        accumulator: list[PointRecord] = []
        progress = PageProgress(fetched=0, total=0)

        def on_page(raw: list[dict[str, Any]], page_progress: PageProgress) -> None:
            nonlocal progress
            records = normalize_observations(raw)
            with self._lock:
                # a page that lands after cancel() is discarded
                if handle.token.cancelled:
                    return
                progress = page_progress
                accumulator.extend(records)
                update = SearchUpdate(
                    SearchStatus.PROGRESS,
                    query,
                    fetched=page_progress.fetched,
                    total=page_progress.total,
                )
                self._publish(handle, ResultSet(tuple(accumulator)), update, on_update)

        try:
            self.paginator.fetch_all(query, on_page, handle.token)
            handle.token.raise_if_cancelled()
        except CancelledError:
            logger.info("Search cancelled: %s", query.describe())
            update = SearchUpdate(
                SearchStatus.CANCELLED, query, fetched=progress.fetched, total=progress.total
            )
            self._finish(handle, ResultSet(tuple(accumulator)), update, on_update)
            return
        except Exception as exc:  # noqa: BLE001
            logger.warning("Search failed for %s: %s", query.describe(), exc)
            update = SearchUpdate(
                SearchStatus.ERROR,
                query,
                fetched=progress.fetched,
                total=progress.total,
                error=exc,
            )
            self._finish(handle, ResultSet(tuple(accumulator)), update, on_update)
            return

        result = ResultSet(tuple(accumulator))
        update = SearchUpdate(
            SearchStatus.COMPLETE, query, fetched=progress.fetched, total=progress.total
        )
        with self._lock:
            if self._finish(handle, result, update, on_update) and self.cache is not None:
                self.cache.put(query, result)
        logger.info("%d observations loaded for %s", len(result), query.describe())

    def _publish(
        self,
        handle: SearchHandle,
        snapshot: ResultSet,
        update: SearchUpdate,
        on_update: OnUpdate,
    ) -> bool:
        """Deliver an update if ``handle`` is still the current search."""
        with self._lock:
            if handle.generation != self._generation:
                logger.debug("Dropping %s update from superseded search", update.status)
                return False
            on_update(snapshot, update)
            return True

    def _finish(
        self,
        handle: SearchHandle,
        snapshot: ResultSet,
        update: SearchUpdate,
        on_update: OnUpdate,
    ) -> bool:
        """Record the terminal outcome and publish it. Returns True if delivered."""
        with self._lock:
            handle.result = snapshot
            handle.final = update
            if self._active is handle:
                self._active = None
            try:
                return self._publish(handle, snapshot, update, on_update)
            except Exception:
                logger.exception("on_update callback failed for %s", handle.query.describe())
                return False
            finally:
                handle._done.set()


def _ignore_update(_snapshot: ResultSet, _update: SearchUpdate) -> None:
    return None
