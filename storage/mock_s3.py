from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional, Set

from settings import get_settings


@dataclass(frozen=True)
class ObjectInfo:
    key: str
    size: int
    last_modified: datetime


class MockS3Bucket:
    """Stand-in for the cloud bucket the weather device uploads its exports to."""

    def __init__(self, name: str, root_path: Optional[Path] = None) -> None:
        self.name = name
        self._objects: Dict[str, bytes] = {}
        self._modified: Dict[str, datetime] = {}
        self._known_keys: Set[str] = set()
        self.root_path = root_path
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)
            self._load_existing_keys()

    def put_object(self, key: str, data: bytes) -> None:
        with self._lock:
            self._objects[key] = data
            self._modified[key] = datetime.now(timezone.utc)
            self._known_keys.add(key)
            if self.root_path:
                path = self.root_path / key
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)

    def get_object(self, key: str) -> bytes:
        with self._lock:
            data = self._objects.get(key)
            if data is not None:
                return data

        if self.root_path:
            path = self.root_path / key
            if path.is_file():
                data = path.read_bytes()
                with self._lock:
                    self._objects[key] = data
                    self._known_keys.add(key)
                return data

        raise KeyError(f"Object with key {key!r} not found in bucket {self.name!r}.")

    def head_object(self, key: str) -> ObjectInfo:
        if self.root_path:
            path = self.root_path / key
            if path.is_file():
                stat = path.stat()
                return ObjectInfo(
                    key=key,
                    size=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )

        with self._lock:
            data = self._objects.get(key)
            modified = self._modified.get(key)
        if data is None or modified is None:
            raise KeyError(f"Object with key {key!r} not found in bucket {self.name!r}.")
        return ObjectInfo(key=key, size=len(data), last_modified=modified)

    def list_objects(self, prefix: str = "") -> List[str]:
        with self._lock:
            keys = set(self._known_keys)
            keys.update(self._objects.keys())

        if self.root_path:
            for path in self.root_path.rglob("*"):
                if path.is_file():
                    keys.add(path.relative_to(self.root_path).as_posix())

        return sorted(key for key in keys if key.startswith(prefix))

    def _load_existing_keys(self) -> None:
        assert self.root_path is not None
        for path in self.root_path.rglob("*"):
            if path.is_file():
                key = path.relative_to(self.root_path).as_posix()
                self._known_keys.add(key)


@lru_cache
def build_default_bucket(
    name: Optional[str] = None,
    root_path: Optional[str] = None,
) -> MockS3Bucket:
    settings = get_settings()
    bucket_name = settings.bucket_name if name is None else name
    bucket_root = settings.bucket_root_path if root_path is None else root_path
    path = Path(bucket_root) if bucket_root else None
    return MockS3Bucket(name=bucket_name, root_path=path)
