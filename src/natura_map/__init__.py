"""natura-map - iNaturalist observation search for biodiversity maps.

Architecture::

    datasources/inaturalist/   Request scheduler, paginator, record normalizer,
                               autocomplete (all requests share one lane)
    cache.py                   Query -> ResultSet cache with a one-hour TTL
    store.py                   Atomic JSON envelopes on disk
    search.py                  Orchestrator: supersession, caching, publication
    reference/                 Quick-select presets
    flows/                     Prefect flow that warms the cache
    services/                  Shared HTTP session

Data flow: search -> cache? -> paginator -> scheduler -> API;
each page -> normalizer -> accumulated ResultSet -> on_update; done -> cache.
"""

__version__ = "0.1.0"

from natura_map.config import Settings, get_settings
from natura_map.schemas import Query, SearchStatus

__all__ = ["Query", "SearchStatus", "Settings", "__version__", "get_settings"]
