"""Request pipeline shared by every cached diagnostic category."""
from __future__ import annotations

import time
from typing import Any, Optional, Protocol, Sequence

from netScope.cache import DiagnosticKey, ResultCache
from netScope.errors import ValidationError
from netScope.logging_config import get_logger
from netScope.validators import is_valid_domain, normalize_target

logger = get_logger("aggregators")


class CommandRunner(Protocol):
    async def run(self, cmd: Sequence[str]) -> Optional[str]:
        ...


def validate_domain(domain: Optional[str]) -> str:
    """Normalized domain, or ValidationError before anything is probed."""
    normalized = normalize_target(domain or "")
    if not is_valid_domain(normalized):
        raise ValidationError("Invalid domain format")
    return normalized


class CachedAggregator:
    """
    Validate -> CacheLookup -> (hit: return) / (miss: build -> store -> return).

    Subclasses set `category` and implement `validate()` and `build()`.
    A cached payload is returned as-is; `build()` results are never
    modified after they are stored.
    """

    category: str = ""

    def __init__(self, cache: ResultCache) -> None:
        self.cache = cache

    def validate(self, target: Optional[str]) -> str:
        return validate_domain(target)

    async def build(self, target: str) -> Any:
        raise NotImplementedError

    async def run(self, target: Optional[str]) -> Any:
        normalized = self.validate(target)
        key = DiagnosticKey(self.category, normalized)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(
                "Serving cached result",
                extra={"category": self.category, "target": normalized, "outcome": "cache_hit"},
            )
            return cached

        start_time = time.time()
        result = await self.build(normalized)
        self.cache.set(key, result)
        logger.info(
            "Diagnostic completed",
            extra={
                "category": self.category,
                "target": normalized,
                "duration": round((time.time() - start_time) * 1000, 2),
                "outcome": "success",
            },
        )
        return result
