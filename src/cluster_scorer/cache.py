"""Thread-safe throttled cache for scoring reports.

Scrapes arriving within the throttle window reuse the last computed value
instead of listing the whole cluster again.
"""

import time
from collections.abc import Callable
from threading import Lock
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class AtomicThrottledCache(Generic[T]):
    """Caches the result of an expensive computation for ``limit`` seconds.

    A failed computation leaves the previous value and its timestamp
    untouched, so the next call retries.
    """

    def __init__(self, limit: float):
        self._lock = Lock()
        self._limit = limit
        self._value: T | None = None
        self._refreshed_at: float | None = None

    def fetch_or_throttle(self, compute: Callable[[], T]) -> tuple[T, float | None]:
        """Return the cached value or compute a fresh one.

        Args:
            compute: Zero-argument function producing a fresh value.

        Returns:
            Tuple of (value, duration) where duration is the compute time in
            seconds, or None when the cached value was served.
        """
        with self._lock:
            if self._value is not None and self._refreshed_at is not None:
                age = time.monotonic() - self._refreshed_at
                if age < self._limit:
                    logger.debug("Serving cached value", age_seconds=round(age, 2))
                    return self._value, None

            start = time.monotonic()
            value = compute()
            duration = time.monotonic() - start

            self._value = value
            self._refreshed_at = time.monotonic()
            logger.debug("Computed fresh value", duration_seconds=round(duration, 3))
            return value, duration
