"""Traceroute path analysis."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from netScope.api.deps import engine_dep
from netScope.engine import DiagnosticsEngine
from netScope.models import RoutingResult

router = APIRouter(prefix="/routing", tags=["routing"])


@router.get("/{domain}", response_model=RoutingResult)
async def routing_analysis(domain: str, engine: DiagnosticsEngine = Depends(engine_dep)):
    return await engine.routing.run(domain)
