from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

logger = logging.getLogger("redis_memoize.stats")


class Stats:
    """Hit/miss counters owned by one memoized function."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._read_errors = 0
        self._write_errors = 0

    def record_hit(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def record_read_error(self) -> None:
        with self._lock:
            self._read_errors += 1

    def record_write_error(self) -> None:
        with self._lock:
            self._write_errors += 1

    @property
    def hits(self) -> int:
        with self._lock:
            return self._hits

    @property
    def misses(self) -> int:
        with self._lock:
            return self._misses

    @property
    def read_errors(self) -> int:
        with self._lock:
            return self._read_errors

    @property
    def write_errors(self) -> int:
        with self._lock:
            return self._write_errors

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "read_errors": self._read_errors,
                "write_errors": self._write_errors,
                "hit_rate": self._hits / total if total > 0 else 0,
            }

    def __repr__(self) -> str:
        return f"Stats(hits={self.hits}, misses={self.misses})"


StatsSink = Callable[[dict[str, Any]], None]


def log_stats(snapshot: dict[str, Any]) -> None:
    logger.info("Stats: hits=%d misses=%d", snapshot["hits"], snapshot["misses"])


class StatsReporter:
    """Emits a stats snapshot at most once per interval.

    The check only runs when ``tick`` is called, so an idle function emits
    nothing. ``interval_seconds=None`` turns emission off.
    """

    def __init__(
        self,
        stats: Stats,
        interval_seconds: Optional[int],
        sink: Optional[StatsSink] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._stats = stats
        self._interval = interval_seconds
        self._sink = sink or log_stats
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._last_emitted = self._clock()

    def tick(self) -> bool:
        if self._interval is None:
            return False

        with self._lock:
            now = self._clock()
            if now - self._last_emitted < self._interval:
                return False
            self._last_emitted = now

        try:
            self._sink(self._stats.snapshot())
        except Exception:
            logger.exception("Stats sink failed")
        return True
