"""Taxon and place name suggestions.

Single-page lookups through the shared request scheduler.  They are not
cancellable and do not debounce: callers driving them from keystrokes should
wait for a quiet period (300 ms or more) before calling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from natura_map.datasources.inaturalist import client

if TYPE_CHECKING:
    from natura_map.datasources.inaturalist.scheduler import RequestScheduler

# =============================================================================
# Data Model
# =============================================================================


@dataclass
class TaxonSuggestion:
    """One row of ``/taxa/autocomplete``."""

    id: int
    name: str
    common_name: str
    rank: str
    iconic_taxon: str

    @property
    def display_name(self) -> str:
        if self.common_name:
            return f"{self.name} ({self.common_name})"
        return self.name


@dataclass
class PlaceSuggestion:
    """One row of ``/places/autocomplete``."""

    id: int
    name: str
    bbox: dict[str, Any] | None = None


# =============================================================================
# Parsing
# =============================================================================


def _parse_taxon(result: dict[str, Any]) -> TaxonSuggestion:
    return TaxonSuggestion(
        id=result["id"],
        name=result.get("name", ""),
        common_name=result.get("preferred_common_name") or "",
        rank=result.get("rank") or "",
        iconic_taxon=result.get("iconic_taxon_name") or "",
    )


def _parse_place(result: dict[str, Any]) -> PlaceSuggestion:
    return PlaceSuggestion(
        id=result["id"],
        name=result.get("display_name") or result.get("name", ""),
        bbox=result.get("bounding_box_geojson"),
    )


# =============================================================================
# API Fetching
# =============================================================================


def _autocomplete(scheduler: RequestScheduler, endpoint: str, text: str) -> list[dict[str, Any]]:
    text = text.strip()
    if len(text) < client.AUTOCOMPLETE_MIN_CHARS:
        return []
    data = scheduler.schedule(endpoint, {"q": text, "per_page": client.AUTOCOMPLETE_PER_PAGE})
    results: list[dict[str, Any]] = data.get("results") or []
    return results[: client.AUTOCOMPLETE_PER_PAGE]


def search_taxa(scheduler: RequestScheduler, text: str) -> list[TaxonSuggestion]:
    """GET /taxa/autocomplete: up to 10 taxa matching ``text``."""
    return [_parse_taxon(r) for r in _autocomplete(scheduler, client.TAXA_AUTOCOMPLETE, text)]


def search_places(scheduler: RequestScheduler, text: str) -> list[PlaceSuggestion]:
    """GET /places/autocomplete: up to 10 places matching ``text``."""
    return [_parse_place(r) for r in _autocomplete(scheduler, client.PLACES_AUTOCOMPLETE, text)]
