"""
Tests for taxon and place autocomplete.
"""

from __future__ import annotations

from unittest.mock import Mock

from natura_map.datasources.inaturalist import autocomplete

SAMPLE_TAXA_RESPONSE: dict = {
    "total_results": 2,
    "results": [
        {
            "id": 47224,
            "name": "Papilionoidea",
            "preferred_common_name": "Butterflies",
            "rank": "superfamily",
            "iconic_taxon_name": "Insecta",
        },
        {"id": 47157, "name": "Lepidoptera", "rank": "order"},
    ],
}

SAMPLE_PLACES_RESPONSE: dict = {
    "total_results": 2,
    "results": [
        {
            "id": 6878,
            "name": "Kenya",
            "display_name": "Kenya",
            "bounding_box_geojson": {"type": "Polygon", "coordinates": []},
        },
        {"id": 99, "name": "Kenyon"},
    ],
}


class TestSearchTaxa:
    """GET /taxa/autocomplete."""

    def test_parses_results(self) -> None:
        scheduler = Mock()
        scheduler.schedule.return_value = SAMPLE_TAXA_RESPONSE

        taxa = autocomplete.search_taxa(scheduler, "papil")

        assert [t.id for t in taxa] == [47224, 47157]
        assert taxa[0].common_name == "Butterflies"
        assert taxa[0].iconic_taxon == "Insecta"
        assert taxa[0].display_name == "Papilionoidea (Butterflies)"
        assert taxa[1].common_name == ""
        assert taxa[1].display_name == "Lepidoptera"
        scheduler.schedule.assert_called_once_with(
            "taxa/autocomplete", {"q": "papil", "per_page": 10}
        )

    def test_short_text_makes_no_request(self) -> None:
        scheduler = Mock()
        assert autocomplete.search_taxa(scheduler, "a") == []
        assert autocomplete.search_taxa(scheduler, "  b ") == []
        scheduler.schedule.assert_not_called()

    def test_caps_at_ten(self) -> None:
        scheduler = Mock()
        scheduler.schedule.return_value = {
            "results": [{"id": i, "name": f"Taxon {i}"} for i in range(15)]
        }
        assert len(autocomplete.search_taxa(scheduler, "taxon")) == 10

    def test_empty_results(self) -> None:
        scheduler = Mock()
        scheduler.schedule.return_value = {"total_results": 0}
        assert autocomplete.search_taxa(scheduler, "zzzz") == []


class TestSearchPlaces:
    """GET /places/autocomplete."""

    def test_parses_results(self) -> None:
        scheduler = Mock()
        scheduler.schedule.return_value = SAMPLE_PLACES_RESPONSE

        places = autocomplete.search_places(scheduler, "Keny")

        assert places[0].id == 6878
        assert places[0].name == "Kenya"
        assert places[0].bbox == {"type": "Polygon", "coordinates": []}
        assert places[1].name == "Kenyon"
        assert places[1].bbox is None
        scheduler.schedule.assert_called_once_with(
            "places/autocomplete", {"q": "Keny", "per_page": 10}
        )
