"""JSON data store with metadata envelopes.

Every JSON file is wrapped in a metadata envelope::

    {"meta": {"source": ..., "fetched_at": ..., **params}, "data": ...}

Writes go to a temporary file in the target directory and are moved into
place with ``os.replace``, so a concurrent reader sees either the previous
file or the complete new one, never a partial write.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003
from typing import Any


class DataStore:
    """Manages read/write of JSON data files under one base directory."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir

    def read(self, path: Path) -> Any | None:
        """Read data payload from a metadata-enveloped JSON file.

        Returns the ``data`` field, or None if the file doesn't exist.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        return envelope.get("data", envelope)

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """Read the full envelope (meta + data) from a JSON file."""
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open(encoding="utf-8") as f:
            result: dict[str, Any] = json.load(f)
        return result

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        **params: Any,
    ) -> Path:
        """Atomically write data wrapped in a metadata envelope.

        Args:
            path: Relative path under base_dir (e.g. ``derived/default.geojson``).
            data: Payload to store under the ``data`` key.
            source: Data source identifier (e.g. ``"inaturalist.org"``).
            **params: Extra metadata fields (cache key, timestamps, etc.).

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
        }
        if params:
            meta.update(params)

        self._write_json(full, {"meta": meta, "data": data})
        return full

    def write_plain(self, path: Path, data: Any) -> Path:
        """Atomically write bare JSON (no envelope), e.g. a GeoJSON export."""
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        self._write_json(full, data)
        return full

    def delete(self, path: Path) -> bool:
        """Remove a stored file. Returns False if it did not exist."""
        full = self._resolve(path)
        try:
            full.unlink()
        except FileNotFoundError:
            return False
        return True

    def clear(self, pattern: str = "*.json") -> int:
        """Delete every top-level file matching ``pattern``. Returns the count."""
        if not self.base.exists():
            return 0
        removed = 0
        for full in self.base.glob(pattern):
            if full.is_file():
                full.unlink()
                removed += 1
        return removed

    def file_path(self, path: Path) -> Path | None:
        """Return the absolute path of a stored file, or None if missing."""
        full = self._resolve(path)
        return full if full.exists() else None

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full

    @staticmethod
    def _write_json(full: Path, payload: Any) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{full.name}.", suffix=".tmp", dir=full.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            os.replace(tmp_name, full)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
