"""Geolocation of an arbitrary IP and of this host's own public address."""
from __future__ import annotations

from typing import Optional

from netScope.aggregators.base import CachedAggregator, logger
from netScope.cache import DiagnosticKey, ResultCache
from netScope.enrichment.geo import GeoClient
from netScope.errors import AggregateFailure, ProbeUnavailable, UpstreamDegraded, ValidationError
from netScope.models import GeoRecord, IspRecord
from netScope.validators import is_valid_ip, normalize_target


class GeoAggregator(CachedAggregator):
    """
    Look up an IPv4/IPv6 literal.

    Upstream or transport failures yield GeoRecord.sentinel(ip): every field
    at its "Unknown"/zero value and `fallback=True`. That fallback is cached
    like a real answer.
    """

    category = "ip-lookup"

    def __init__(self, cache: ResultCache, client: GeoClient) -> None:
        super().__init__(cache)
        self.client = client

    def validate(self, target: Optional[str]) -> str:
        ip = normalize_target(target or "")
        if not is_valid_ip(ip):
            raise ValidationError("Invalid IP address format")
        return ip

    async def build(self, ip: str) -> GeoRecord:
        try:
            return await self.client.lookup(ip)
        except (UpstreamDegraded, ProbeUnavailable) as exc:
            logger.warning(
                f"Geolocation failed, using fallback record: {exc.message}",
                extra={"ip": ip, "category": self.category, "outcome": "fallback"},
            )
            return GeoRecord.sentinel(ip)


class IspAggregator:
    """
    Discover our public IP through the echo service, then geolocate it.

    Unlike GeoAggregator there is no fallback record: failure of either
    step is an AggregateFailure.
    """

    category = "my-isp"
    key = DiagnosticKey("my-isp", "self")

    def __init__(self, cache: ResultCache, client: GeoClient) -> None:
        self.cache = cache
        self.client = client

    async def run(self) -> IspRecord:
        cached = self.cache.get(self.key)
        if cached is not None:
            return cached

        try:
            public_ip = await self.client.discover_public_ip()
            record = await self.client.lookup(public_ip)
        except (UpstreamDegraded, ProbeUnavailable) as exc:
            logger.error(
                f"ISP lookup failed: {exc.message}",
                extra={"category": self.category, "outcome": "aggregate_failure"},
            )
            raise AggregateFailure("ISP lookup failed", details=exc.message) from exc

        result = IspRecord(**record.model_dump())
        self.cache.set(self.key, result)
        return result
