"""Simple file-based caching for fetched price histories."""

from __future__ import annotations

import hashlib
import json
import time
from pathlib import Path

from frontier.config import Paths, SETTINGS


class DataCache:
    """File-based JSON cache with TTL support."""

    def __init__(self, category: str = "general", cache_dir: Path | None = None):
        self.cache_dir = (cache_dir or Paths.DATA_CACHE) / category
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        ttl_config = SETTINGS.get("cache", {}).get("ttl_hours", {})
        self.ttl_seconds = ttl_config.get(category, 24) * 3600

    def _key_path(self, key: str) -> Path:
        hashed = hashlib.md5(key.encode()).hexdigest()
        return self.cache_dir / f"{hashed}.json"

    def get(self, key: str) -> dict | None:
        """Retrieve cached JSON data if not expired."""
        path = self._key_path(key)
        if not path.exists():
            return None
        if time.time() - path.stat().st_mtime > self.ttl_seconds:
            path.unlink(missing_ok=True)
            return None
        with open(path) as f:
            return json.load(f)

    def set(self, key: str, data: dict) -> None:
        """Store JSON data in cache."""
        path = self._key_path(key)
        with open(path, "w") as f:
            json.dump(data, f)
