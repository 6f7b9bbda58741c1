"""Ping, HTTP status and port reachability for one domain."""
from __future__ import annotations

import asyncio
from typing import List, Optional

from netScope.aggregators.base import CachedAggregator, CommandRunner
from netScope.cache import ResultCache
from netScope.config import PingConfig
from netScope.logging_config import get_logger
from netScope.models import ConnectivityResult
from netScope.parsers.ping import build_ping_stats, parse_ping_output
from netScope.probes.http import HttpProber
from netScope.probes.ports import PortProber

logger = get_logger("aggregators")


def ping_command(domain: str, cfg: PingConfig) -> List[str]:
    return [
        "ping",
        "-c", str(cfg.count),
        "-i", str(cfg.interval_seconds),
        "-W", str(cfg.wait_seconds),
        domain,
    ]


class ConnectivityAggregator(CachedAggregator):
    """One ping batch, one HTTP GET and a full port probe, all in parallel."""

    category = "connectivity"

    def __init__(
        self,
        cache: ResultCache,
        runner: CommandRunner,
        http_prober: HttpProber,
        port_prober: PortProber,
        ping_config: Optional[PingConfig] = None,
    ) -> None:
        super().__init__(cache)
        self.runner = runner
        self.http_prober = http_prober
        self.port_prober = port_prober
        self.ping_config = ping_config or PingConfig()

    async def build(self, domain: str) -> ConnectivityResult:
        cfg = self.ping_config
        ping_output, http_status, ports = await asyncio.gather(
            self.runner.run(ping_command(domain, cfg)),
            self.http_prober.check(domain),
            self.port_prober.probe(domain),
        )

        report = parse_ping_output(ping_output)
        stats = build_ping_stats(
            report,
            sample_count=cfg.count,
            interval_seconds=cfg.interval_seconds,
            timeout_ms=cfg.wait_seconds * 1000,
            packet_size=cfg.packet_size,
        )
        if stats is None:
            logger.warning(
                "No ping summary available",
                extra={"target": domain, "record_count": len(report.samples), "outcome": "degraded"},
            )

        return ConnectivityResult(
            domain=domain,
            ping=stats,
            ping_times=report.samples,
            http=http_status,
            ports=ports,
        )
