"""A-record consistency across a fixed set of public resolvers."""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Sequence

import dns.asyncresolver
import dns.exception

from netScope.aggregators.base import CachedAggregator
from netScope.cache import ResultCache
from netScope.config import ResolverEntry, default_resolvers
from netScope.logging_config import get_logger
from netScope.models import ConsistencyVerdict, DnsCheckResult, ResolverRecordSet
from netScope.parsers.dns import DOTTED_QUAD_PATTERN

logger = get_logger("aggregators")

DEFAULT_TIMEOUT_SECONDS = 5.0

ResolverLookup = Callable[[str, str, float], Awaitable[List[str]]]


async def resolve_a_records(nameserver: str, domain: str, timeout: float) -> List[str]:
    """Ask one specific nameserver for the A records of `domain`."""
    resolver = dns.asyncresolver.Resolver(configure=False)
    resolver.nameservers = [nameserver]
    resolver.lifetime = timeout
    answers = await resolver.resolve(domain, "A")
    return [rdata.to_text() for rdata in answers]


def compute_consistency(record_sets: Sequence[ResolverRecordSet]) -> ConsistencyVerdict:
    """
    Consistent iff every resolver that answered returned exactly the union
    of all answers. Resolvers with empty answers do not count as
    responding and do not break consistency.
    """
    unique: List[str] = []
    for record_set in record_sets:
        for record in record_set.records:
            if record not in unique:
                unique.append(record)

    union = set(unique)
    responding = [rs for rs in record_sets if rs.records]
    return ConsistencyVerdict(
        consistent=all(set(rs.records) == union for rs in responding),
        unique_records=unique,
        total_resolvers=len(record_sets),
        responding_resolvers=len(responding),
    )


class ResolverConsistencyAggregator(CachedAggregator):
    """Query every configured resolver in parallel and compare their answers."""

    category = "dns-check"

    def __init__(
        self,
        cache: ResultCache,
        resolvers: Optional[Sequence[ResolverEntry]] = None,
        lookup: Optional[ResolverLookup] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(cache)
        self.resolvers = list(resolvers) if resolvers is not None else default_resolvers()
        self.lookup: ResolverLookup = lookup or resolve_a_records
        self.timeout_seconds = timeout_seconds

    async def _query(self, entry: ResolverEntry, domain: str) -> ResolverRecordSet:
        start_time = time.time()
        try:
            answers = await asyncio.wait_for(
                self.lookup(entry.ip, domain, self.timeout_seconds),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Resolver {entry.name} timed out",
                extra={"resolver": entry.ip, "target": domain, "outcome": "timeout"},
            )
            answers = []
        except (dns.exception.DNSException, OSError) as exc:
            logger.info(
                f"Resolver {entry.name} returned no A records: {exc}",
                extra={"resolver": entry.ip, "target": domain, "outcome": "no_answer", "error_type": type(exc).__name__},
            )
            answers = []
        elapsed = round((time.time() - start_time) * 1000, 2)

        return ResolverRecordSet(
            resolver_name=entry.name,
            resolver_ip=entry.ip,
            records=[a for a in answers if DOTTED_QUAD_PATTERN.match(a)],
            response_time_ms=elapsed,
        )

    async def build(self, domain: str) -> DnsCheckResult:
        record_sets = await asyncio.gather(*(self._query(entry, domain) for entry in self.resolvers))
        verdict = compute_consistency(record_sets)
        logger.info(
            "Resolver consistency computed",
            extra={
                "target": domain,
                "outcome": "consistent" if verdict.consistent else "inconsistent",
                "record_count": len(verdict.unique_records),
            },
        )
        return DnsCheckResult(domain=domain, resolvers=list(record_sets), consistency=verdict)
