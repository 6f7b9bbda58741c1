"""Ping, HTTP reachability and TCP port probes for one domain."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from netScope.api.deps import engine_dep
from netScope.engine import DiagnosticsEngine
from netScope.models import ConnectivityResult

router = APIRouter(prefix="/connectivity", tags=["connectivity"])


@router.get("/{domain}", response_model=ConnectivityResult)
async def connectivity_analysis(domain: str, engine: DiagnosticsEngine = Depends(engine_dep)):
    return await engine.connectivity.run(domain)
