"""IP geolocation, own-ISP discovery and IPv6 -> IPv4 conversion."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from netScope.api.deps import engine_dep
from netScope.engine import DiagnosticsEngine
from netScope.logging_config import get_logger
from netScope.models import GeoRecord, IspRecord, Ipv6Conversion, Ipv6ConvertRequest

logger = get_logger("api")
router = APIRouter(tags=["ip"])


@router.get("/ip-lookup/{ip}", response_model=GeoRecord)
async def ip_lookup(ip: str, engine: DiagnosticsEngine = Depends(engine_dep)):
    return await engine.geo.run(ip)


@router.get("/my-isp", response_model=IspRecord)
async def my_isp(engine: DiagnosticsEngine = Depends(engine_dep)):
    return await engine.isp.run()


@router.post("/ipv6-to-ipv4", response_model=Ipv6Conversion)
async def ipv6_to_ipv4(
    payload: Optional[Ipv6ConvertRequest] = Body(default=None),
    engine: DiagnosticsEngine = Depends(engine_dep),
):
    result = engine.convert_ipv6(payload.ipv6 if payload else None)
    logger.info(
        "IPv6 conversion",
        extra={"ip": result.ipv6, "outcome": result.conversion_type.value},
    )
    return result
