"""
Tests for the Query model.
"""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from natura_map.schemas import Query, SearchStatus


class TestQueryEquality:
    """Equality and hashing depend on field values only."""

    def test_order_independent(self) -> None:
        q1 = Query(place_id=14, taxon_id=47170)
        q2 = Query(taxon_id=47170, place_id=14)
        assert q1 == q2
        assert hash(q1) == hash(q2)

    def test_from_params_camel_case(self) -> None:
        q = Query.from_params(
            {
                "taxonName": "Fungi",
                "taxonId": 47170,
                "placeName": "California",
                "placeId": 14,
                "qualityGrade": "research",
            }
        )
        assert q == Query(taxon_id=47170, taxon_name="Fungi", place_id=14, quality_grade="research")

    def test_blank_strings_are_unset(self) -> None:
        q = Query.from_params({"taxonName": "  ", "placeId": 6744, "dateFrom": ""})
        assert q.taxon_name is None
        assert q.date_from is None

    def test_immutable(self) -> None:
        q = Query(taxon_id=3)
        with pytest.raises(ValidationError):
            q.taxon_id = 4  # type: ignore[misc]

    def test_non_positive_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Query(taxon_id=0)


class TestDispatchable:
    """At least one of taxon id, taxon name, place id."""

    @pytest.mark.parametrize(
        "fields",
        [{"taxon_id": 3}, {"taxon_name": "Aves"}, {"place_id": 6924}],
    )
    def test_identifying_fields(self, fields: dict) -> None:
        assert Query(**fields).is_dispatchable

    def test_dates_and_grade_alone_are_not_enough(self) -> None:
        q = Query(date_from=date(2024, 1, 1), date_to=date(2024, 12, 31), quality_grade="research")
        assert not q.is_dispatchable


class TestApiParams:
    """Remote query parameters."""

    def test_full_query(self) -> None:
        q = Query(
            taxon_id=3,
            taxon_name="Aves",
            place_id=6924,
            date_from=date(2024, 1, 1),
            date_to=date(2024, 6, 30),
            quality_grade="research",
        )
        assert q.to_api_params() == {
            "taxon_id": 3,
            "place_id": 6924,
            "d1": "2024-01-01",
            "d2": "2024-06-30",
            "quality_grade": "research",
            "geo": "true",
        }

    def test_taxon_name_when_no_id(self) -> None:
        assert Query(taxon_name="Fungi").to_api_params() == {"taxon_name": "Fungi", "geo": "true"}

    def test_describe(self) -> None:
        assert Query(taxon_name="Aves", place_id=6924).describe() == "Aves, place 6924"
        assert Query().describe() == "<empty query>"


class TestSearchStatus:
    def test_terminal(self) -> None:
        assert not SearchStatus.PROGRESS.is_terminal
        assert SearchStatus.COMPLETE.is_terminal
        assert SearchStatus.CANCELLED.is_terminal
        assert SearchStatus.ERROR.is_terminal
