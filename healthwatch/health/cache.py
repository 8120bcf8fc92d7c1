"""Result cache — last result per resource with a per-call TTL.

Expiry is checked lazily on read. The cache also remembers the last stored
result regardless of expiry, which is what transition detection compares
against.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from .models import CachedEntry, CheckResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Thread-safe in-memory cache keyed by resource name."""

    def __init__(self, enabled: bool = True, clock: Callable[[], float] | None = None) -> None:
        self.enabled = enabled
        self._clock = clock or time.monotonic
        self._entries: dict[str, CachedEntry] = {}
        self._lock = threading.Lock()

    def get(self, resource_name: str) -> CachedEntry | None:
        """Return the entry if still fresh, else None (miss)."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(resource_name)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry

    def last(self, resource_name: str) -> CheckResult | None:
        """Most recent stored result, expired or not."""
        with self._lock:
            entry = self._entries.get(resource_name)
        return entry.result if entry else None

    def put(
        self, resource_name: str, result: CheckResult, ttl: float,
    ) -> tuple[bool, CheckResult | None]:
        """Store a result, returning (stored, replaced result).

        The swap is atomic, so each stored result sees exactly the result it
        replaced. When a newer result is already stored nothing is written and
        that newer result is returned instead.
        """
        expires_at = self._clock() + max(ttl, 0)
        with self._lock:
            current = self._entries.get(resource_name)
            previous = current.result if current is not None else None
            if previous is not None and previous.checked_at > result.checked_at:
                logger.debug("Ignoring stale result for %s", resource_name)
                return False, previous
            self._entries[resource_name] = CachedEntry(result=result, expires_at=expires_at)
        return True, previous

    def invalidate(self, resource_name: str) -> None:
        with self._lock:
            self._entries.pop(resource_name, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
