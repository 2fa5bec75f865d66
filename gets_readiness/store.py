"""
In-memory store for reports and uploads with per-entry expiry.

The store is owned by the calling service and passed into the analyzer;
there is no module-level instance.
"""

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Optional

from .config import REPORT_EXPIRY_DAYS, logger


@dataclass
class _Entry:
    value: Any
    stored_at: float
    expires_at: float


class ReportStore:
    """
    Key/value store where each entry expires after a time-to-live.

    Args:
        default_ttl: TTL applied when ``put`` is called without one
        clock: Returns the current time in seconds (injectable for tests)
    """

    def __init__(
        self,
        default_ttl: timedelta = timedelta(days=REPORT_EXPIRY_DAYS),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def put(self, key: str, value: Any, ttl: Optional[timedelta] = None) -> None:
        """Store a value, replacing any previous entry under the same key."""
        now = self._clock()
        ttl = ttl if ttl is not None else self.default_ttl
        self._entries[key] = _Entry(
            value=value,
            stored_at=now,
            expires_at=now + ttl.total_seconds(),
        )

    def get(self, key: str) -> Optional[Any]:
        """Return a live value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None

        return entry.value

    def evict_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.info(f"Evicted {len(expired)} expired entries")
        return len(expired)

    def recent(self, limit: int = 10) -> list[Any]:
        """Live values, newest first."""
        self.evict_expired()
        entries = sorted(self._entries.values(), key=lambda e: e.stored_at, reverse=True)
        return [entry.value for entry in entries[:limit]]

    def __len__(self) -> int:
        """Number of live entries."""
        self.evict_expired()
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
