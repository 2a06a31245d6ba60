"""Draining flag and the set of connection workers still running."""

import threading
import time

from tinyhttp.domain.connection_context import ConnectionLoggerAdapter

LIFECYCLE_LOGGER = ConnectionLoggerAdapter("tinyhttp.lifecycle")

# Workers that exit without calling cleanup_worker are noticed at this interval.
LIVENESS_POLL_SECONDS = 0.1


class ServerLifecycle:
    """Tracks in-flight workers and whether the server has started draining.

    The accept loop registers a thread before starting it, and the worker
    unregisters itself on the way out. ``wait_for_workers`` wakes up on each
    unregistration.
    """

    def __init__(self) -> None:
        self._draining = threading.Event()
        self._workers_changed = threading.Condition()
        self._workers: set[threading.Thread] = set()

    def should_stop(self) -> bool:
        return self._draining.is_set()

    def register_worker(self, thread: threading.Thread) -> None:
        with self._workers_changed:
            self._workers.add(thread)

    def cleanup_worker(self, thread: threading.Thread) -> None:
        with self._workers_changed:
            self._workers.discard(thread)
            self._workers_changed.notify_all()

    def has_worker(self, thread: threading.Thread) -> bool:
        with self._workers_changed:
            return thread in self._workers

    def active_worker_count(self) -> int:
        with self._workers_changed:
            return len(self._workers)

    def begin_draining(self) -> None:
        """Stop accepting connections; repeated signals are ignored."""
        if self._draining.is_set():
            return
        self._draining.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "shutdown_started"}
        )

    def _live_workers(self) -> int:
        self._workers = {worker for worker in self._workers if worker.is_alive()}
        return len(self._workers)

    def wait_for_workers(self, timeout: float) -> bool:
        """Block until no worker is running; False if ``timeout`` ran out first."""
        deadline = time.monotonic() + timeout
        with self._workers_changed:
            while self._live_workers():
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    LIFECYCLE_LOGGER.warning(
                        "Shutdown timeout exceeded",
                        extra={
                            "event": "shutdown_timeout",
                            "remaining_workers": len(self._workers),
                        },
                    )
                    return False
                self._workers_changed.wait(min(LIVENESS_POLL_SECONDS, remaining))
        return True
