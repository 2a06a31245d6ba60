"""Per-path mutual exclusion for file store operations."""

import contextlib
import threading
from pathlib import Path
from typing import ContextManager, Iterator, Optional


class PathLockRegistry:
    """Hands out one lock per resolved path, creating it on first use.

    Locks are never evicted; the registry grows with the number of distinct
    paths touched during the process lifetime.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, path: Path) -> threading.Lock:
        """Return the lock guarding ``path``."""
        key = path.as_posix()
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def tracked_paths(self) -> int:
        """Return how many distinct paths have been locked so far."""
        with self._lock:
            return len(self._locks)

    @contextlib.contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        """Hold the lock for ``path`` for the duration of the block."""
        with self.lock_for(path):
            yield


def guard(registry: Optional[PathLockRegistry], path: Path) -> ContextManager[None]:
    """Lock ``path`` when a registry is configured, otherwise do nothing."""
    if registry is None:
        return contextlib.nullcontext()
    return registry.hold(path)
