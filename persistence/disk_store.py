from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

from json_store import atomic_write_json, read_json

T = TypeVar("T")


class PathLockRegistry:
    """
    Provides a stable lock per normalized file path so two stores opened on the
    same file serialise their read-modify-write cycles.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, path: Path) -> threading.RLock:
        key = str(path.resolve())
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock


GLOBAL_PATH_LOCKS = PathLockRegistry()


class DiskJsonDocumentStore:
    """
    Stores a single JSON document on disk at a fixed path.

    - ``load`` always returns a dict (empty dict when the file is missing).
    - Writes are atomic.
    - ``transact`` holds the path lock across load, mutate and save.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            raw = read_json(self._path)
            if raw is None:
                return {}
            if not isinstance(raw, dict):
                raise ValueError(f"Expected a JSON object in {self._path}")
            return raw

    def save(self, doc: dict[str, Any]) -> None:
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            atomic_write_json(self._path, doc)

    def transact(self, fn: Callable[[dict[str, Any]], T]) -> T:
        """
        Run ``fn`` on the loaded document and persist it afterwards.

        ``fn`` mutates the dict in place. If it raises, nothing is written.
        """
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            doc = self.load()
            result = fn(doc)
            self.save(doc)
            return result
