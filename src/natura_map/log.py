"""Logging setup for the CLI and flows."""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str = "INFO", fmt: str = DEFAULT_FORMAT) -> None:
    """Configure the root logger once; library modules only call ``getLogger``."""
    logging.basicConfig(level=level, format=fmt)
    # urllib3 is chatty at DEBUG (one line per connection)
    logging.getLogger("urllib3").setLevel(max(logging.getLevelName(level), logging.INFO))
