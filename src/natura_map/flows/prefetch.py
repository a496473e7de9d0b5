"""
Prefect flow that warms the result cache with the quick-select presets.

Presets whose cache entry is still fresh are skipped.  The default preset is
also written as a plain GeoJSON FeatureCollection so the map can show data
before the first search.

Run locally:
    python -m natura_map.flows.prefetch

Run with Prefect dashboard:
    prefect server start &
    python -m natura_map.flows.prefetch
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from prefect import flow, task

from natura_map.config import get_settings
from natura_map.datasources.inaturalist.records import ResultSet
from natura_map.errors import NaturaMapError
from natura_map.reference.presets import DEFAULT_PRESET, PRESETS, get_preset
from natura_map.search import SearchOrchestrator
from natura_map.store import DataStore

DEFAULT_GEOJSON_PATH = Path("derived/default.geojson")

# Data store for derived outputs
store = DataStore(get_settings().data_dir)

_orchestrator: SearchOrchestrator | None = None


def get_orchestrator() -> SearchOrchestrator:
    """Orchestrator on the process-wide request lane, created on first use."""
    global _orchestrator  # noqa: PLW0603
    if _orchestrator is None:
        _orchestrator = SearchOrchestrator.from_settings(get_settings())
    return _orchestrator


# No Prefect retries: the request scheduler already retries throttled calls once.
@task(name="fetch-preset", persist_result=False)
def fetch_preset(label: str) -> ResultSet:
    """Run the preset's search to completion (stores it in the cache)."""
    preset = get_preset(label)
    return get_orchestrator().search_sync(preset.query)


@task(name="save-default-geojson")
def save_default_geojson(result: ResultSet) -> Path:
    """Write the default preset's records as a GeoJSON FeatureCollection."""
    return store.write_plain(DEFAULT_GEOJSON_PATH, result.to_feature_collection())


@flow(name="prefetch-presets", log_prints=True)
def prefetch_presets(
    labels: list[str] | None = None,
    default_label: str = DEFAULT_PRESET,
) -> dict[str, Any]:
    """
    Fetch every selected preset into the cache.

    Args:
        labels: Preset labels to fetch (default: all presets).
        default_label: Preset exported to ``derived/default.geojson``.

    Returns:
        ``{"fetched": {label: record_count}, "skipped": [...], "failed": {...}}``
    """
    orchestrator = get_orchestrator()
    selected = labels or [p.label for p in PRESETS]
    results: dict[str, Any] = {"fetched": {}, "skipped": [], "failed": {}}

    for label in selected:
        try:
            preset = get_preset(label)
        except KeyError:
            print(f"{label}: unknown preset")
            results["failed"][label] = "unknown preset"
            continue
        cached = orchestrator.cache.get(preset.query) if orchestrator.cache else None
        if cached is not None:
            print(f"{label}: cache is fresh, skipping fetch.")
            results["skipped"].append(label)
            result = cached
        else:
            print(f"Fetching {label}...")
            try:
                result = fetch_preset(label)
            except NaturaMapError as exc:
                print(f"{label}: failed ({exc})")
                results["failed"][label] = str(exc)
                continue
            results["fetched"][label] = len(result)
            print(f"{label}: {len(result)} observations")

        if label == default_label:
            path = save_default_geojson(result)
            print(f"Saved default data to {path}")

    return results


if __name__ == "__main__":
    summary = prefetch_presets()
    print(f"Flow complete: {summary}")
