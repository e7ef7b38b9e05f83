"""Per-service request spacing for the online catalogs."""

from __future__ import annotations

import threading
import time

from tagsmith.utils.logger import get_logger

logger = get_logger("utils.rate_limiter")


class RateLimiter:
    """Enforces a minimum interval between calls to the same service.

    Each service gets its own lock, so a MusicBrainz back-off never delays
    an iTunes request.

    Usage:
        limiter = RateLimiter()
        limiter.wait("musicbrainz", 1.0)
    """

    def __init__(self) -> None:
        self._last_call: dict[str, float] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._meta_lock = threading.Lock()

    def _lock_for(self, service_name: str) -> threading.Lock:
        with self._meta_lock:
            lock = self._locks.get(service_name)
            if lock is None:
                lock = self._locks[service_name] = threading.Lock()
        return lock

    def wait(self, service_name: str, min_interval: float) -> float:
        """Block until *min_interval* seconds have passed since the last call.

        Args:
            service_name: Service identifier (e.g. ``"itunes"``).
            min_interval: Minimum spacing in seconds.

        Returns:
            Seconds actually slept.
        """
        lock = self._lock_for(service_name)

        with lock:
            elapsed = time.monotonic() - self._last_call.get(service_name, 0.0)
            sleep_time = max(0.0, min_interval - elapsed)

        # Sleep outside the lock so other callers can read their own state
        if sleep_time > 0:
            logger.debug("Rate limit: sleeping %.2fs for %s", sleep_time, service_name)
            time.sleep(sleep_time)

        with lock:
            self._last_call[service_name] = time.monotonic()
        return sleep_time


# Shared by every search provider
rate_limiter = RateLimiter()
