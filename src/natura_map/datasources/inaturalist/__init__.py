"""iNaturalist observation data source.

Public API:
  - client: API constants (endpoints, page size, result cap, rate limits)
  - scheduler: RequestScheduler, the single throttled lane for every request
  - paginator: Paginator, CancellationToken, PageProgress
  - records: PointRecord, ResultSet, normalize_observation
  - autocomplete: search_taxa, search_places
"""

from natura_map.datasources.inaturalist.autocomplete import (
    PlaceSuggestion,
    TaxonSuggestion,
    search_places,
    search_taxa,
)
from natura_map.datasources.inaturalist.paginator import (
    CancellationToken,
    PageProgress,
    Paginator,
)
from natura_map.datasources.inaturalist.records import (
    PointRecord,
    ResultSet,
    normalize_observation,
    normalize_observations,
)
from natura_map.datasources.inaturalist.scheduler import RequestScheduler, get_scheduler

__all__ = [
    "CancellationToken",
    "PageProgress",
    "Paginator",
    "PlaceSuggestion",
    "PointRecord",
    "RequestScheduler",
    "ResultSet",
    "TaxonSuggestion",
    "get_scheduler",
    "normalize_observation",
    "normalize_observations",
    "search_places",
    "search_taxa",
]
