"""
Domain models for natura-map.

Pydantic models for the values that cross component boundaries.  Raw API
payloads stay plain dicts until ``datasources.inaturalist.records`` normalizes
them.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Search status
# =============================================================================


class SearchStatus(StrEnum):
    """Status carried by every update published to a search caller."""

    PROGRESS = "progress"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not SearchStatus.PROGRESS


# =============================================================================
# Query
# =============================================================================

# camelCase keys used by the browser front end and the preset definitions
_PARAM_ALIASES: dict[str, str] = {
    "taxonId": "taxon_id",
    "taxonName": "taxon_name",
    "placeId": "place_id",
    "dateFrom": "date_from",
    "dateTo": "date_to",
    "qualityGrade": "quality_grade",
    "d1": "date_from",
    "d2": "date_to",
}


class Query(BaseModel):
    """An observation search.

    Immutable and hashable.  Equality compares field values only, so two
    queries built from the same values in a different order are equal.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="forbid")

    taxon_id: int | None = Field(default=None, gt=0)
    taxon_name: str | None = None
    place_id: int | None = Field(default=None, gt=0)
    date_from: date | None = None
    date_to: date | None = None
    quality_grade: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> Query:
        """Build a query from a loose mapping (snake_case or camelCase keys).

        Keys that are not query fields (``placeName``, ``label``...) are ignored.
        """
        fields: dict[str, Any] = {}
        for key, value in params.items():
            name = _PARAM_ALIASES.get(key, key)
            if name in cls.model_fields:
                fields[name] = value
        return cls(**fields)

    @property
    def is_dispatchable(self) -> bool:
        """True if the query identifies a taxon or a place."""
        return any(v is not None for v in (self.taxon_id, self.taxon_name, self.place_id))

    def to_api_params(self) -> dict[str, Any]:
        """Filter parameters for ``GET /observations`` (no paging keys)."""
        params: dict[str, Any] = {}
        if self.taxon_id is not None:
            params["taxon_id"] = self.taxon_id
        elif self.taxon_name is not None:
            params["taxon_name"] = self.taxon_name
        if self.place_id is not None:
            params["place_id"] = self.place_id
        if self.date_from is not None:
            params["d1"] = self.date_from.isoformat()
        if self.date_to is not None:
            params["d2"] = self.date_to.isoformat()
        if self.quality_grade is not None:
            params["quality_grade"] = self.quality_grade
        params["geo"] = "true"
        return params

    def describe(self) -> str:
        """Short human-readable label for logs and CLI output."""
        parts: list[str] = []
        if self.taxon_name:
            parts.append(self.taxon_name)
        elif self.taxon_id is not None:
            parts.append(f"taxon {self.taxon_id}")
        if self.place_id is not None:
            parts.append(f"place {self.place_id}")
        if self.date_from or self.date_to:
            start = self.date_from.isoformat() if self.date_from else "…"
            end = self.date_to.isoformat() if self.date_to else "…"
            parts.append(f"{start}–{end}")
        if self.quality_grade:
            parts.append(self.quality_grade)
        return ", ".join(parts) or "<empty query>"
