"""
Shared HTTP client for the iNaturalist API.

Provides a pre-configured ``requests.Session`` with a default timeout and a
retry adapter that only retries failed *connections*.  Status-code retries
(429, 5xx) are deliberately left to the request scheduler: a retry issued by
urllib3 would skip the scheduler's rate-limit gate.

Usage::

    from natura_map.services.http import create_session

    s = create_session(timeout=10)
    resp = s.get("https://api.inaturalist.org/v1/observations", params={...})
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

#: Connection-level retries only; the request never reached the server.
DEFAULT_RETRY = Retry(
    total=2,
    connect=2,
    read=0,
    status=0,
    backoff_factor=0.5,
    allowed_methods=["GET", "HEAD", "OPTIONS"],
    raise_on_status=False,  # the scheduler inspects status codes itself
)

DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_USER_AGENT = "natura-map/0.1 (biodiversity observation map)"


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> requests.Session:
    """
    Build a ``requests.Session`` with retry adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``DEFAULT_RETRY``).
        timeout: Default timeout applied to every request.
        user_agent: ``User-Agent`` header sent with every request.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or DEFAULT_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = user_agent
    s.headers["Accept"] = "application/json"

    # Inject a default timeout so callers don't need to pass ``timeout=``.
    _original_send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return _original_send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s
