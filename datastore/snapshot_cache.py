from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from pydantic import ValidationError

from app.schemas import WeatherSnapshot
from settings import get_settings

logger = logging.getLogger(__name__)


def _as_utc(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass
class _Entry:
    snapshot: WeatherSnapshot
    stored_at: datetime


class SnapshotCache:
    """TTL store for computed weather snapshots, optionally mirrored to a JSON file."""

    def __init__(self, ttl: timedelta, persistence_path: Optional[Path] = None) -> None:
        self.ttl = ttl
        self._entries: Dict[str, _Entry] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put(self, key: str, snapshot: WeatherSnapshot, now: Optional[datetime] = None) -> None:
        stored_at = _as_utc(now)
        with self._lock:
            self._entries[key] = _Entry(snapshot=snapshot.model_copy(deep=True), stored_at=stored_at)
            self._persist()

    def get(self, key: str, now: Optional[datetime] = None) -> Optional[WeatherSnapshot]:
        """Return a copy of the cached snapshot, or ``None`` when missing or stale."""

        current = _as_utc(now)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if current - entry.stored_at >= self.ttl:
                return None
            return entry.snapshot.model_copy(deep=True)

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
            self._persist()

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            key: {
                "stored_at": entry.stored_at.isoformat(),
                "snapshot": entry.snapshot.model_dump(mode="json"),
            }
            for key, entry in self._entries.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable snapshot cache at %s", self.persistence_path)
            data = {}

        for key, payload in data.items():
            try:
                self._entries[key] = _Entry(
                    snapshot=WeatherSnapshot.model_validate(payload["snapshot"]),
                    stored_at=_as_utc(datetime.fromisoformat(payload["stored_at"])),
                )
            except (KeyError, TypeError, ValueError, ValidationError):
                logger.warning("Dropping malformed cache entry %r", key)


@lru_cache
def build_default_cache(
    ttl_seconds: Optional[int] = None,
    path: Optional[str] = None,
) -> SnapshotCache:
    settings = get_settings()
    ttl = settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
    cache_path = settings.cache_persistence_path if path is None else path
    persistence = Path(cache_path) if cache_path else None
    return SnapshotCache(ttl=timedelta(seconds=ttl), persistence_path=persistence)
