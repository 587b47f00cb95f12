"""Process-lifetime key/value cache with a fixed time-to-live."""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


def stable_key(value: Any) -> str:
    """JSON key that does not depend on dict insertion order."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


class ExpiringCache(Generic[T]):
    """Entries expire ``ttl_seconds`` after they were stored.

    Expiry is checked on every read; an expired entry is dropped and reported
    as a miss.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._store: dict[str, tuple[T, float]] = {}

    def get(self, key: str) -> Optional[T]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, created_at = entry
        if self._clock() - created_at > self.ttl_seconds:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: T) -> None:
        self._store[key] = (value, self._clock())

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
