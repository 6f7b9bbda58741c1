"""Traceroute path and hop-time summary for one domain."""
from __future__ import annotations

from typing import List, Optional

from netScope.aggregators.base import CachedAggregator, CommandRunner
from netScope.cache import ResultCache
from netScope.config import TracerouteConfig
from netScope.errors import AggregateFailure
from netScope.logging_config import get_logger
from netScope.models import Hop, RouteSummary, RoutingResult
from netScope.parsers.traceroute import illustrative_hops, parse_traceroute_hops

logger = get_logger("aggregators")


def traceroute_command(domain: str, cfg: TracerouteConfig) -> List[str]:
    return ["traceroute", "-m", str(cfg.max_hops), "-w", str(cfg.wait_seconds), domain]


def summarize_hops(hops: List[Hop]) -> Optional[RouteSummary]:
    if not hops:
        return None
    times = [hop.round_trip_ms for hop in hops]
    return RouteSummary(
        count=len(times),
        min=min(times),
        max=max(times),
        mean=sum(times) / len(times),
    )


class RoutingAggregator(CachedAggregator):
    """
    Run traceroute and summarize hop times.

    With `illustrative_fallback` enabled, a run that yields no hops is
    replaced by a fixed demo path and the result is marked
    `illustrative=True`. With it disabled the category fails instead.
    """

    category = "routing"

    def __init__(
        self,
        cache: ResultCache,
        runner: CommandRunner,
        traceroute_config: Optional[TracerouteConfig] = None,
    ) -> None:
        super().__init__(cache)
        self.runner = runner
        self.config = traceroute_config or TracerouteConfig()

    async def build(self, domain: str) -> RoutingResult:
        output = await self.runner.run(traceroute_command(domain, self.config))
        hops = parse_traceroute_hops(output)
        illustrative = False

        if not hops:
            if not self.config.illustrative_fallback:
                raise AggregateFailure("Routing analysis failed", details="traceroute produced no hops")
            logger.warning(
                "Traceroute yielded no hops, using illustrative path",
                extra={"target": domain, "outcome": "illustrative_fallback"},
            )
            hops = illustrative_hops(domain)
            illustrative = True

        logger.debug("Route assembled", extra={"target": domain, "hop_count": len(hops)})
        return RoutingResult(
            domain=domain,
            hops=hops,
            summary=summarize_hops(hops),
            illustrative=illustrative,
        )
