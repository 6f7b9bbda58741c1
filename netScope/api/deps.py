"""Process-wide diagnostics engine for the API.

The engine is built lazily on first use so that importing the app never
touches the network or the filesystem beyond reading settings.
"""
from __future__ import annotations

from typing import Optional

from netScope.config import Settings, get_settings
from netScope.engine import DiagnosticsEngine
from netScope.logging_config import get_logger

logger = get_logger("api")

_engine: Optional[DiagnosticsEngine] = None


def init_engine(settings: Optional[Settings] = None) -> DiagnosticsEngine:
    global _engine
    if _engine is None:
        _engine = DiagnosticsEngine(settings or get_settings())
        logger.info("Diagnostics engine ready", extra={"state": "ready"})
    return _engine


async def close_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.close()
        _engine = None


async def engine_dep() -> DiagnosticsEngine:
    return init_engine()
