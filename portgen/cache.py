from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

CACHE_TTL = 5 * 60


class ResponseCache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def expire(self, key: str) -> None: ...


class TTLCache:
    """Per-process response cache; entries older than ``ttl`` seconds are dropped on read."""

    def __init__(self, ttl: float = CACHE_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def expire(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class NullCache:
    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any) -> None:
        pass

    def expire(self, key: str) -> None:
        pass


def snapshot_path(cache_dir: Path, project_id: str) -> Path:
    return cache_dir / f"{project_id}.json"


def load_snapshot(cache_dir: Path, project_id: str) -> Optional[dict]:
    path = snapshot_path(cache_dir, project_id)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable snapshot %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


def write_snapshot(cache_dir: Path, project_id: str, data: dict) -> Path:
    """Replace the snapshot file in one step; a failed write keeps the old file."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    path = snapshot_path(cache_dir, project_id)
    fd, tmp_name = tempfile.mkstemp(dir=cache_dir, prefix=f".{project_id}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path
