"""Multi-resolver A-record consistency."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from netScope.api.deps import engine_dep
from netScope.engine import DiagnosticsEngine
from netScope.models import DnsCheckResult

router = APIRouter(prefix="/dns-check", tags=["dns"])


@router.get("/{domain}", response_model=DnsCheckResult)
async def dns_check(domain: str, engine: DiagnosticsEngine = Depends(engine_dep)):
    return await engine.dns_check.run(domain)
