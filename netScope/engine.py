"""Wires probes, enrichment clients and aggregators into one diagnostics engine."""
from __future__ import annotations

import random
import shutil
import time
from typing import Any, Dict, Optional

from netScope.aggregators.base import CommandRunner
from netScope.aggregators.connectivity import ConnectivityAggregator
from netScope.aggregators.dns import DnsAggregator
from netScope.aggregators.geo import GeoAggregator, IspAggregator
from netScope.aggregators.ipv6 import convert_ipv6_to_ipv4
from netScope.aggregators.resolvers import ResolverConsistencyAggregator, ResolverLookup
from netScope.aggregators.routing import RoutingAggregator
from netScope.cache import ResultCache
from netScope.config import Settings
from netScope.enrichment import CircuitBreaker, RateLimiter
from netScope.enrichment.geo import GeoClient
from netScope.logging_config import get_logger
from netScope.models import Ipv6Conversion, utc_now_iso
from netScope.probes.http import HttpProber
from netScope.probes.ports import PortProber
from netScope.probes.process import ProcessRunner

logger = get_logger("engine")

VERSION = "1.0.0"
EXTERNAL_TOOLS = ("dig", "ping", "traceroute", "whois")


class DiagnosticsEngine:
    """
    Owns the shared result cache and one aggregator per category.

    Every collaborator can be injected; anything not passed in is built from
    `settings`.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        cache: Optional[ResultCache] = None,
        runner: Optional[CommandRunner] = None,
        port_prober: Optional[PortProber] = None,
        http_prober: Optional[HttpProber] = None,
        geo_client: Optional[GeoClient] = None,
        resolver_lookup: Optional[ResolverLookup] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or Settings()
        cfg = self.settings
        self.started_at = time.monotonic()

        self.cache = cache or ResultCache(ttl_seconds=cfg.cache.ttl_seconds)
        self.runner = runner or ProcessRunner(
            timeout_seconds=cfg.process.timeout_seconds,
            max_output_bytes=cfg.process.max_output_bytes,
        )
        self.port_prober = port_prober or PortProber(
            ports=cfg.port_probe.ports,
            timeout_seconds=cfg.port_probe.timeout_seconds,
        )
        self.http_prober = http_prober or HttpProber(
            timeout_seconds=cfg.http_probe.timeout_seconds,
            max_redirects=cfg.http_probe.max_redirects,
        )
        self.geo_client = geo_client or GeoClient(
            api_url=cfg.geo.api_url,
            echo_url=cfg.geo.echo_url,
            timeout_seconds=cfg.geo.timeout_seconds,
            breaker=CircuitBreaker(
                name="ip_api",
                failure_threshold=cfg.geo.failure_threshold,
                recovery_time=cfg.geo.recovery_seconds,
            ),
            limiter=RateLimiter(max_requests=cfg.geo.max_requests_per_minute, window_seconds=60.0),
        )

        self.dns = DnsAggregator(self.cache, self.runner, rng=rng)
        self.connectivity = ConnectivityAggregator(
            self.cache, self.runner, self.http_prober, self.port_prober, ping_config=cfg.ping,
        )
        self.routing = RoutingAggregator(self.cache, self.runner, traceroute_config=cfg.traceroute)
        self.dns_check = ResolverConsistencyAggregator(
            self.cache,
            resolvers=cfg.dns_check.resolvers,
            lookup=resolver_lookup,
            timeout_seconds=cfg.dns_check.timeout_seconds,
        )
        self.geo = GeoAggregator(self.cache, self.geo_client)
        self.isp = IspAggregator(self.cache, self.geo_client)

    def convert_ipv6(self, ipv6: Optional[str]) -> Ipv6Conversion:
        return convert_ipv6_to_ipv4(ipv6)

    def uptime_seconds(self) -> float:
        return round(time.monotonic() - self.started_at, 3)

    def health(self) -> Dict[str, Any]:
        """Liveness plus which external tools are on PATH. Never probes the network."""
        tools = {tool: shutil.which(tool) is not None for tool in EXTERNAL_TOOLS}
        missing = [tool for tool, present in tools.items() if not present]
        if missing:
            logger.debug("External tools missing", extra={"outcome": "degraded", "command": ",".join(missing)})
        return {
            "status": "healthy",
            "timestamp": utc_now_iso(),
            "uptime": self.uptime_seconds(),
            "version": VERSION,
            "tools": tools,
            "cacheEntries": len(self.cache),
        }

    async def close(self) -> None:
        await self.http_prober.close()
        await self.geo_client.close()
        logger.info("Engine closed", extra={"state": "stopped"})
