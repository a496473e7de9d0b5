"""
iNaturalist API constants.

API docs: https://api.inaturalist.org/v1/docs/
Rate limits: ~1 req/sec, 10k/day
Recommended practices: https://www.inaturalist.org/pages/api+recommended+practices
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API configuration
# ---------------------------------------------------------------------------
API_BASE = "https://api.inaturalist.org/v1"
WEB_BASE = "https://www.inaturalist.org"

OBSERVATIONS = "observations"
TAXA_AUTOCOMPLETE = "taxa/autocomplete"
PLACES_AUTOCOMPLETE = "places/autocomplete"

MAX_PER_PAGE = 200  # API maximum for /observations
MAX_RESULTS = 10_000  # API hard ceiling per query
AUTOCOMPLETE_PER_PAGE = 10
AUTOCOMPLETE_MIN_CHARS = 2

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------
MIN_REQUEST_INTERVAL: float = 1.1  # seconds, stay under 1 req/s
THROTTLE_COOLDOWN: float = 5.0  # seconds to back off after HTTP 429
HTTP_TOO_MANY_REQUESTS = 429


def observation_url(observation_id: int | str) -> str:
    """Public web page of an observation."""
    return f"{WEB_BASE}/observations/{observation_id}"
