"""DNS record enumeration, authoritative servers and WHOIS for one domain."""
from __future__ import annotations

import asyncio
import random
from typing import List, Optional

from netScope.aggregators.base import CachedAggregator, CommandRunner
from netScope.cache import ResultCache
from netScope.errors import AggregateFailure
from netScope.logging_config import get_logger
from netScope.models import RECORD_TYPES, DnsRecord, DnsResult, RecordType, ResponseTime
from netScope.parsers.dns import parse_authoritative_servers, parse_dns_records
from netScope.parsers.whois import parse_whois

logger = get_logger("aggregators")

DIG_TIMEOUT_SECONDS = 5


def dig_short_command(domain: str, record_type: RecordType) -> List[str]:
    return ["dig", "+short", f"+time={DIG_TIMEOUT_SECONDS}", domain, record_type.value]


def dig_trace_command(domain: str) -> List[str]:
    return ["dig", "+trace", f"+time={DIG_TIMEOUT_SECONDS}", domain]


def whois_command(domain: str) -> List[str]:
    return ["whois", domain]


class DnsAggregator(CachedAggregator):
    """
    Six `dig +short` record queries, one `dig +trace` and one `whois`, run
    concurrently. Records are assembled in RECORD_TYPES order whatever the
    completion order.

    `responseTimes` holds one synthetic figure (10-60 ms) per A record for
    the dashboard chart; it is not a measurement and the result says so via
    `responseTimesIllustrative`.
    """

    category = "dns"

    def __init__(
        self,
        cache: ResultCache,
        runner: CommandRunner,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(cache)
        self.runner = runner
        self.rng = rng or random.Random()

    async def build(self, domain: str) -> DnsResult:
        *record_outputs, trace_output, whois_output = await asyncio.gather(
            *(self.runner.run(dig_short_command(domain, rtype)) for rtype in RECORD_TYPES),
            self.runner.run(dig_trace_command(domain)),
            self.runner.run(whois_command(domain)),
        )

        if all(output is None for output in (*record_outputs, trace_output, whois_output)):
            logger.error(
                "Every DNS and WHOIS lookup failed",
                extra={"category": self.category, "target": domain, "outcome": "aggregate_failure"},
            )
            raise AggregateFailure("DNS analysis failed", details="DNS query tool unavailable")

        records: List[DnsRecord] = []
        for rtype, output in zip(RECORD_TYPES, record_outputs):
            records.extend(parse_dns_records(output, rtype, domain))

        a_count = sum(1 for r in records if r.type == RecordType.A)
        response_times = [
            ResponseTime(record=f"A-{i}", time=round(self.rng.uniform(10, 60), 3))
            for i in range(1, a_count + 1)
        ]

        if whois_output is None:
            logger.warning("WHOIS unavailable, using Unknown fields", extra={"target": domain, "outcome": "degraded"})

        logger.debug(
            "DNS records assembled",
            extra={"target": domain, "record_count": len(records)},
        )
        return DnsResult(
            domain=domain,
            records=records,
            response_times=response_times,
            authoritative=parse_authoritative_servers(trace_output, domain),
            whois=parse_whois(whois_output),
        )
