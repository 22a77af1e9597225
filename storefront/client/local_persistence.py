from __future__ import annotations

import hashlib
from pathlib import Path
from threading import Lock
from typing import Protocol

from storefront.core.config import Settings
from storefront.infrastructure.persistence_clients import RedisClientManager


class LocalPersistence(Protocol):
    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryLocalStorage:
    def __init__(self) -> None:
        self._lock = Lock()
        self._values: dict[str, bytes] = {}

    def read(self, key: str) -> bytes | None:
        with self._lock:
            return self._values.get(key)

    def write(self, key: str, value: bytes) -> None:
        with self._lock:
            self._values[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._values)


class FileLocalStorage:
    """One file per key under ``root``; survives process restarts."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def read(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def write(self, key: str, value: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_bytes(value)
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self.root / f"{digest}.bin"


class RedisLocalStorage:
    def __init__(self, *, redis_manager: RedisClientManager, namespace: str = "storefront") -> None:
        self.redis_manager = redis_manager
        self.namespace = namespace

    def read(self, key: str) -> bytes | None:
        client = self._client()
        value = client.get(self._redis_key(key))
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def write(self, key: str, value: bytes) -> None:
        self._client().set(self._redis_key(key), value)

    def delete(self, key: str) -> None:
        self._client().delete(self._redis_key(key))

    def _client(self):  # type: ignore[no-untyped-def]
        client = self.redis_manager.client
        if client is None:
            raise RuntimeError(f"Redis is {self.redis_manager.status}")
        return client

    def _redis_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"


def build_local_storage(
    settings: Settings, redis_manager: RedisClientManager | None = None
) -> LocalPersistence:
    backend = settings.local_storage_backend
    if backend == "memory":
        return MemoryLocalStorage()
    if backend == "file":
        return FileLocalStorage(settings.local_storage_dir)
    if backend == "redis":
        if redis_manager is None:
            redis_manager = RedisClientManager(url=settings.redis_url, enabled=True)
            redis_manager.connect()
        return RedisLocalStorage(redis_manager=redis_manager)
    raise ValueError(f"Unknown local storage backend: {backend}")
