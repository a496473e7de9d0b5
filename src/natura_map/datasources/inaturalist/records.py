"""Observation normalization: raw API result -> point record."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from natura_map.datasources.inaturalist.client import observation_url

UNKNOWN = "Unknown"

# Thumbnail size token in photo URLs and its next size up.
PHOTO_THUMB_SIZE = "square"
PHOTO_DISPLAY_SIZE = "small"

# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class PointRecord:
    """A single observation with coordinates and flat string properties."""

    id: int
    longitude: float
    latitude: float
    properties: Mapping[str, Any] = field(default_factory=dict)

    def to_feature(self) -> dict[str, Any]:
        """GeoJSON ``Feature`` for the map layer."""
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [self.longitude, self.latitude]},
            "properties": dict(self.properties),
        }

    @classmethod
    def from_feature(cls, feature: Mapping[str, Any]) -> PointRecord:
        lon, lat = feature["geometry"]["coordinates"][:2]
        properties = dict(feature.get("properties") or {})
        return cls(
            id=int(properties["id"]),
            longitude=float(lon),
            latitude=float(lat),
            properties=properties,
        )


@dataclass(frozen=True)
class ResultSet:
    """Immutable, ordered snapshot of the records of one search."""

    records: tuple[PointRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PointRecord]:
        return iter(self.records)

    def to_feature_collection(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": [r.to_feature() for r in self.records]}

    @classmethod
    def from_feature_collection(cls, collection: Mapping[str, Any]) -> ResultSet:
        return cls(tuple(PointRecord.from_feature(f) for f in collection.get("features", [])))


# =============================================================================
# Parsing
# =============================================================================


def _find_ancestor_name(taxon: Mapping[str, Any], rank: str) -> str:
    """Name of the ancestor at ``rank``, or the taxon itself if it has that rank."""
    for ancestor in taxon.get("ancestors") or []:
        if ancestor.get("rank") == rank and ancestor.get("name"):
            return str(ancestor["name"])
    if taxon.get("rank") == rank and taxon.get("name"):
        return str(taxon["name"])
    return ""


def _photo_url(obs: Mapping[str, Any]) -> str:
    photos = obs.get("photos") or []
    if photos and photos[0].get("url"):
        return str(photos[0]["url"]).replace(PHOTO_THUMB_SIZE, PHOTO_DISPLAY_SIZE, 1)
    return ""


def _coordinates(obs: Mapping[str, Any]) -> tuple[float, float] | None:
    geojson = obs.get("geojson") or {}
    coords = geojson.get("coordinates")
    if not coords or len(coords) < 2:
        return None
    try:
        return float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        return None


def extract_properties(obs: Mapping[str, Any]) -> dict[str, Any]:
    """Flat property mapping for one observation.

    Family falls back to the taxon's own name so every record has a grouping
    value; order and class fall back to an empty string.
    """
    taxon = obs.get("taxon") or {}
    user = obs.get("user") or {}
    taxon_name = taxon.get("name") or UNKNOWN
    return {
        "id": obs["id"],
        "taxon_name": taxon_name,
        "taxon_common_name": taxon.get("preferred_common_name") or "",
        "taxon_rank": taxon.get("rank") or "",
        "taxon_family": _find_ancestor_name(taxon, "family") or taxon_name,
        "taxon_order": _find_ancestor_name(taxon, "order"),
        "taxon_class": _find_ancestor_name(taxon, "class"),
        "iconic_taxon_name": taxon.get("iconic_taxon_name") or UNKNOWN,
        "observed_on": obs.get("observed_on") or "",
        "observer": user.get("login") or "",
        "quality_grade": obs.get("quality_grade") or "",
        "photo_url": _photo_url(obs),
        "uri": obs.get("uri") or observation_url(obs["id"]),
    }


def normalize_observation(obs: Mapping[str, Any]) -> PointRecord | None:
    """Convert one raw observation. Returns None if it has no usable coordinates."""
    if obs.get("id") is None:
        return None
    coords = _coordinates(obs)
    if coords is None:
        return None
    lon, lat = coords
    return PointRecord(
        id=int(obs["id"]),
        longitude=lon,
        latitude=lat,
        properties=extract_properties(obs),
    )


def normalize_observations(observations: Iterable[Mapping[str, Any]]) -> list[PointRecord]:
    """Normalize a page of raw observations, keeping API order."""
    records: list[PointRecord] = []
    for obs in observations:
        record = normalize_observation(obs)
        if record is not None:
            records.append(record)
    return records
