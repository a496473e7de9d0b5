"""
Time-bounded result cache keyed by query shape.

One JSON file per query under the cache directory, named after a hash of the
canonical key.  Entries older than the TTL are treated as missing but left on
disk until the same query overwrites them or the cache is cleared.

The cache is an optimization only: every read or write failure is logged and
degrades to a miss / no-op.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from natura_map.datasources.inaturalist.records import ResultSet
from natura_map.schemas import Query
from natura_map.store import DataStore

if TYPE_CHECKING:
    from natura_map.config import Settings

logger = logging.getLogger(__name__)

CACHE_TTL_MS = 60 * 60 * 1000  # 1 hour
CACHE_SOURCE = "inaturalist.org"


def canonical_key(query: Query | Mapping[str, Any]) -> str:
    """Order-independent string key for a query.

    Every field is included (unset ones as ``null``) and keys are sorted, so
    the key depends only on field values.
    """
    if not isinstance(query, Query):
        query = Query.from_params(query)
    return json.dumps(query.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


def _entry_path(key: str) -> Path:
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return Path(f"{digest}.json")


class ResultCache:
    """Persistent query -> ResultSet cache with a fixed TTL."""

    def __init__(
        self,
        store: DataStore,
        *,
        ttl_ms: int = CACHE_TTL_MS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_ms = ttl_ms
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> ResultCache:
        return cls(DataStore(settings.cache_dir), ttl_ms=settings.cache_ttl_seconds * 1000)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, query: Query) -> ResultSet | None:
        """Cached ResultSet for ``query``, or None if missing, stale or unreadable."""
        key = canonical_key(query)
        try:
            envelope = self.store.read_raw(_entry_path(key))
            if envelope is None:
                logger.debug("Cache miss: %s", key)
                return None
            meta = envelope["meta"]
            if meta.get("key") != key:
                logger.debug("Cache key mismatch for %s", key)
                return None
            age_ms = self._now_ms() - int(meta["created_at"])
            if age_ms >= self.ttl_ms:
                logger.debug("Cache stale (%d ms old): %s", age_ms, key)
                return None
            result = ResultSet.from_feature_collection(envelope["data"])
        except (OSError, LookupError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        logger.debug("Cache hit (%d records): %s", len(result), key)
        return result

    def put(self, query: Query, result: ResultSet) -> None:
        """Store ``result`` for ``query``, replacing any previous entry."""
        key = canonical_key(query)
        try:
            self.store.write(
                _entry_path(key),
                result.to_feature_collection(),
                source=CACHE_SOURCE,
                key=key,
                created_at=self._now_ms(),
            )
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    def is_fresh(self, query: Query) -> bool:
        return self.get(query) is not None

    def clear(self) -> int:
        """Delete every entry. Returns the number removed (0 on failure)."""
        try:
            return self.store.clear()
        except OSError as exc:
            logger.warning("Cache clear failed: %s", exc)
            return 0
