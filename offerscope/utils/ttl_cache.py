"""
Bounded in-process cache with per-entry TTL.

Constructed once per process and passed to whoever needs it (rate limiter,
session language cache). Expired entries are dropped lazily on read and by a
periodic sweep on a daemon timer; over max_entries the oldest entry goes.
"""
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

from offerscope.utils.logger import get_logger

logger = get_logger("utils.ttl_cache")


class TTLCache:
    """Thread-safe key/value cache with expiry and oldest-first eviction."""

    def __init__(
        self,
        default_ttl: float = 300.0,
        max_entries: int = 10000,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (expires_at, value); insertion order is age order
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self._timer: Optional[threading.Timer] = None
        self._running = False

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return default
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + ttl, value)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cache entry {evicted}")

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def start(self) -> None:
        """Start the periodic background sweep."""
        with self._lock:
            if self._running:
                return
            self._running = True
        self._schedule()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def _schedule(self) -> None:
        timer = threading.Timer(self.sweep_interval, self._run_sweep)
        timer.daemon = True
        with self._lock:
            if not self._running:
                return
            self._timer = timer
        timer.start()

    def _run_sweep(self) -> None:
        try:
            self.sweep()
        finally:
            self._schedule()


_MISSING = object()
