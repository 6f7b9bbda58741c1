"""Liveness endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from netScope.api.deps import engine_dep
from netScope.engine import DiagnosticsEngine

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(engine: DiagnosticsEngine = Depends(engine_dep)):
    """Always 200 while the process is serving; `tools` reports which CLIs are on PATH."""
    return engine.health()
