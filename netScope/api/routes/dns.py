"""DNS record, authoritative server and WHOIS analysis."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from netScope.api.deps import engine_dep
from netScope.engine import DiagnosticsEngine
from netScope.models import DnsResult

router = APIRouter(prefix="/dns", tags=["dns"])


@router.get("/{domain}", response_model=DnsResult)
async def dns_analysis(domain: str, engine: DiagnosticsEngine = Depends(engine_dep)):
    return await engine.dns.run(domain)
