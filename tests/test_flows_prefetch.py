"""
Tests for the cache-warming prefetch flow.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from natura_map.cache import ResultCache
from natura_map.datasources.inaturalist.records import ResultSet
from natura_map.flows import prefetch
from natura_map.reference.presets import get_preset
from natura_map.search import SearchOrchestrator
from natura_map.store import DataStore

from tests.helpers import FakeObservationsApi, make_response

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

BIRDS = "Birds of Costa Rica"
FUNGI = "Fungi of California"


def _install(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    make_scheduler: Any,
    handler: Any,
) -> SearchOrchestrator:
    scheduler, _ = make_scheduler(handler)
    orchestrator = SearchOrchestrator(scheduler, ResultCache(DataStore(tmp_path / "cache")))
    monkeypatch.setattr(prefetch, "_orchestrator", orchestrator)
    monkeypatch.setattr(prefetch, "store", DataStore(tmp_path / "data"))
    return orchestrator


class TestFetchPreset:
    """The fetch task runs a blocking search."""

    def test_fetch_preset(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, make_scheduler: Any
    ) -> None:
        api = FakeObservationsApi([12])
        orchestrator = _install(monkeypatch, tmp_path, make_scheduler, api)

        result = prefetch.fetch_preset(BIRDS)

        assert len(result) == 12
        assert api.requests[0]["taxon_id"] == 3
        assert api.requests[0]["place_id"] == 6924
        assert orchestrator.cache is not None
        assert orchestrator.cache.get(get_preset(BIRDS).query) == result


class TestSaveDefaultGeojson:
    def test_writes_feature_collection(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setattr(prefetch, "store", DataStore(tmp_path))

        path = prefetch.save_default_geojson(ResultSet())

        assert path == tmp_path / "derived" / "default.geojson"
        assert json.loads(path.read_text()) == {"type": "FeatureCollection", "features": []}


class TestPrefetchFlow:
    """The flow skips fresh presets and exports the default one."""

    def test_fetches_then_skips(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, make_scheduler: Any
    ) -> None:
        api = FakeObservationsApi([5, 7])
        _install(monkeypatch, tmp_path, make_scheduler, api)

        first = prefetch.prefetch_presets(labels=[BIRDS, FUNGI], default_label=FUNGI)

        assert first["fetched"] == {BIRDS: 5, FUNGI: 7}
        assert first["skipped"] == []
        default = json.loads((tmp_path / "data" / "derived" / "default.geojson").read_text())
        assert len(default["features"]) == 7

        requests_before = len(api.requests)
        second = prefetch.prefetch_presets(labels=[BIRDS, FUNGI], default_label=FUNGI)

        assert second["skipped"] == [BIRDS, FUNGI]
        assert second["fetched"] == {}
        assert len(api.requests) == requests_before

    def test_failures_are_reported(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, make_scheduler: Any
    ) -> None:
        _install(monkeypatch, tmp_path, make_scheduler, lambda _u, _p: make_response(500))

        summary = prefetch.prefetch_presets(labels=[BIRDS], default_label=BIRDS)

        assert list(summary["failed"]) == [BIRDS]
        assert not (tmp_path / "data" / "derived" / "default.geojson").exists()

    def test_unknown_label_does_not_abort(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, make_scheduler: Any
    ) -> None:
        api = FakeObservationsApi([5])
        _install(monkeypatch, tmp_path, make_scheduler, api)

        summary = prefetch.prefetch_presets(
            labels=["Dragons of Mars", BIRDS], default_label=BIRDS
        )

        assert summary["failed"] == {"Dragons of Mars": "unknown preset"}
        assert summary["fetched"] == {BIRDS: 5}
