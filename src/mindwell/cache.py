"""In-memory cache with per-entry expiry."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass
class CacheEntry:
    key: str
    payload: Any
    expires_at: float


class MoodCache:
    """Key -> payload store where entries expire a fixed time after being set.

    Expiry is only checked on read; there is no background sweep and no
    capacity bound.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def set(self, key: str, payload: Any, ttl: float | None = None) -> None:
        ttl = self.ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(key=key, payload=payload, expires_at=self._clock() + ttl)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() > entry.expires_at:
            logger.debug("Cache entry expired: %s", key)
            del self._entries[key]
            return None

        return entry.payload

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
