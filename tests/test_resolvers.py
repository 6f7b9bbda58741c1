import asyncio

import dns.resolver

from netScope.aggregators.resolvers import ResolverConsistencyAggregator, compute_consistency
from netScope.cache import ResultCache
from netScope.config import ResolverEntry
from netScope.models import ResolverRecordSet


def _set(name, records):
    return ResolverRecordSet(resolver_name=name, resolver_ip="0.0.0.0", records=records)


def test_consistent_when_all_agree_in_any_order():
    verdict = compute_consistency([
        _set("Google", ["1.1.1.1", "2.2.2.2"]),
        _set("Cloudflare", ["2.2.2.2", "1.1.1.1"]),
    ])
    assert verdict.consistent
    assert verdict.unique_records == ["1.1.1.1", "2.2.2.2"]
    assert verdict.responding_resolvers == 2


def test_inconsistent_when_one_resolver_differs():
    verdict = compute_consistency([
        _set("Google", ["1.1.1.1"]),
        _set("Quad9", ["1.1.1.1", "3.3.3.3"]),
    ])
    assert not verdict.consistent
    assert verdict.unique_records == ["1.1.1.1", "3.3.3.3"]


def test_empty_answers_are_ignored():
    verdict = compute_consistency([_set("Google", ["1.1.1.1"]), _set("OpenDNS", [])])
    assert verdict.consistent
    assert verdict.total_resolvers == 2
    assert verdict.responding_resolvers == 1

    nobody = compute_consistency([_set("Google", []), _set("OpenDNS", [])])
    assert nobody.consistent
    assert nobody.unique_records == []


def test_aggregator_queries_every_resolver():
    answers = {
        "8.8.8.8": ["93.184.216.34"],
        "1.1.1.1": ["93.184.216.34"],
        "9.9.9.9": None,
    }
    seen = []

    async def lookup(nameserver, domain, timeout):
        seen.append((nameserver, domain))
        result = answers[nameserver]
        if result is None:
            raise dns.resolver.NXDOMAIN()
        return result

    resolvers = [
        ResolverEntry(name="Google", ip="8.8.8.8"),
        ResolverEntry(name="Cloudflare", ip="1.1.1.1"),
        ResolverEntry(name="Quad9", ip="9.9.9.9"),
    ]
    aggregator = ResolverConsistencyAggregator(ResultCache(), resolvers=resolvers, lookup=lookup)
    result = asyncio.run(aggregator.run("example.com"))

    assert sorted(seen) == sorted((ip, "example.com") for ip in answers)
    assert [r.resolver_name for r in result.resolvers] == ["Google", "Cloudflare", "Quad9"]
    assert result.resolvers[2].records == []
    assert result.consistency.consistent
    assert result.consistency.responding_resolvers == 2
    assert all(r.response_time_ms is not None for r in result.resolvers)


def test_slow_resolver_times_out_to_empty():
    async def lookup(nameserver, domain, timeout):
        if nameserver == "9.9.9.9":
            await asyncio.sleep(3600)
        return ["93.184.216.34"]

    resolvers = [ResolverEntry(name="Google", ip="8.8.8.8"), ResolverEntry(name="Quad9", ip="9.9.9.9")]
    aggregator = ResolverConsistencyAggregator(
        ResultCache(), resolvers=resolvers, lookup=lookup, timeout_seconds=0.05
    )
    result = asyncio.run(aggregator.run("example.com"))
    assert result.resolvers[1].records == []
    assert result.consistency.unique_records == ["93.184.216.34"]


def test_default_resolver_set():
    aggregator = ResolverConsistencyAggregator(ResultCache())
    assert [r.name for r in aggregator.resolvers] == ["Google", "Cloudflare", "OpenDNS", "Quad9"]
