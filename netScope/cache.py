"""In-memory result cache keyed by (category, target) with lazy TTL expiry."""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, NamedTuple, Optional

from netScope.logging_config import get_logger

logger = get_logger("cache")

DEFAULT_CACHE_TTL_SECONDS = 300.0


class DiagnosticKey(NamedTuple):
    category: str
    target: str

    def __str__(self) -> str:
        return f"{self.category}:{self.target}"


class CacheEntry(NamedTuple):
    payload: Any
    created_at: float


class ResultCache:
    """
    Key -> (payload, timestamp) store.

    An entry is valid while `now - created_at < ttl`. Expired entries are
    reported as misses but stay in storage until the key is written again.
    Writers for the same key simply overwrite each other; payloads are
    never mutated after being stored.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[DiagnosticKey, CacheEntry] = {}

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.created_at < self.ttl_seconds

    def get(self, key: DiagnosticKey) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self.is_fresh(entry):
            logger.debug("Cache entry expired", extra={"cache_key": str(key), "outcome": "expired"})
            return None
        logger.debug("Cache hit", extra={"cache_key": str(key), "outcome": "cache_hit"})
        return entry.payload

    def set(self, key: DiagnosticKey, payload: Any) -> None:
        self._entries[key] = CacheEntry(payload=payload, created_at=self._clock())

    def __len__(self) -> int:
        return len(self._entries)
