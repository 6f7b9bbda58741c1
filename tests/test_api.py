import json
import random

import pytest
from fastapi.testclient import TestClient

from conftest import FakeHttpProber, FakePortProber, FakeRunner
from netScope.api.deps import engine_dep
from netScope.api.server import app, configure_rate_limit
from netScope.config import RateLimitConfig, Settings
from netScope.engine import DiagnosticsEngine
from netScope.errors import ProbeUnavailable
from netScope.logging_config import REDACTED, setup_logging
from netScope.models import GeoRecord


class StubGeoClient:
    def __init__(self, fail=False):
        self.fail = fail

    async def lookup(self, ip):
        if self.fail:
            raise ProbeUnavailable("Geolocation lookup timed out")
        return GeoRecord(ip=ip, country="United States", country_code="US", asn="AS15169 Google LLC")

    async def discover_public_ip(self):
        if self.fail:
            raise ProbeUnavailable("Public IP discovery failed")
        return "203.0.113.7"

    async def close(self):
        return None


async def _lookup(nameserver, domain, timeout):
    return ["93.184.216.34"]


def _engine(runner=None, geo_fail=False):
    return DiagnosticsEngine(
        Settings(),
        runner=runner or FakeRunner({"dig A": "93.184.216.34\n"}, default=""),
        port_prober=FakePortProber(),
        http_prober=FakeHttpProber(),
        geo_client=StubGeoClient(fail=geo_fail),
        resolver_lookup=_lookup,
        rng=random.Random(1),
    )


@pytest.fixture
def make_client():
    def factory(engine=None, rate_limit=None):
        engine = engine or _engine()
        app.dependency_overrides[engine_dep] = lambda: engine
        configure_rate_limit(rate_limit or RateLimitConfig(enabled=False))
        return TestClient(app, raise_server_exceptions=False)

    yield factory
    app.dependency_overrides.clear()
    configure_rate_limit(RateLimitConfig(enabled=False))


def test_dns_endpoint(make_client):
    response = make_client().get("/api/dns/example.com")
    assert response.status_code == 200
    body = response.json()
    assert body["records"] == [{"type": "A", "name": "example.com", "value": "93.184.216.34", "ttl": 300}]
    assert body["responseTimes"][0]["record"] == "A-1"
    assert body["whois"]["registrar"] == "Unknown"
    assert "X-Request-ID" in response.headers


def test_invalid_domain_is_400(make_client):
    response = make_client().get("/api/dns/bad_domain!")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid domain format"}


def test_dns_tool_missing_is_500(make_client):
    client = make_client(_engine(runner=FakeRunner(default=None)))
    response = client.get("/api/dns/example.com")
    assert response.status_code == 500
    assert response.json() == {"error": "DNS analysis failed", "details": "DNS query tool unavailable"}


def test_connectivity_endpoint(make_client):
    response = make_client().get("/api/connectivity/example.com")
    assert response.status_code == 200
    body = response.json()
    assert body["ping"] is None
    assert body["http"]["status"] == 200
    assert body["ports"]["80"] == "Open"


def test_routing_endpoint_illustrative(make_client):
    body = make_client().get("/api/routing/example.com").json()
    assert body["illustrative"] is True
    assert body["hops"][0]["roundTripMs"] == 1.234
    assert body["summary"]["count"] == 5


def test_ip_lookup(make_client):
    body = make_client().get("/api/ip-lookup/8.8.8.8").json()
    assert body["countryCode"] == "US"
    assert body["fallback"] is False


def test_ip_lookup_invalid(make_client):
    response = make_client().get("/api/ip-lookup/300.1.1.1")
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid IP address format"


def test_ip_lookup_fallback(make_client):
    body = make_client(_engine(geo_fail=True)).get("/api/ip-lookup/8.8.8.8").json()
    assert body["fallback"] is True
    assert body["isp"] == "Unknown ISP"
    assert body["asn"] == "AS0"


def test_my_isp(make_client):
    body = make_client().get("/api/my-isp").json()
    assert body["ip"] == "203.0.113.7"
    assert body["connectionType"] == "Unknown"


def test_my_isp_failure(make_client):
    response = make_client(_engine(geo_fail=True)).get("/api/my-isp")
    assert response.status_code == 500
    assert response.json()["error"] == "ISP lookup failed"


def test_ipv6_to_ipv4(make_client):
    client = make_client()
    mapped = client.post("/api/ipv6-to-ipv4", json={"ipv6": "::ffff:192.168.1.1"}).json()
    assert mapped["ipv4"] == "192.168.1.1"
    assert mapped["conversionType"] == "Mapped"

    other = client.post("/api/ipv6-to-ipv4", json={"ipv6": "2001:db8::1"}).json()
    assert other["conversionType"] == "Not Possible"


def test_ipv6_to_ipv4_bad_bodies(make_client):
    client = make_client()
    assert client.post("/api/ipv6-to-ipv4", json={}).json() == {"error": "IPv6 address is required"}
    assert client.post("/api/ipv6-to-ipv4").status_code == 400
    assert client.post("/api/ipv6-to-ipv4", json={"ipv6": "zzz"}).json() == {"error": "Invalid IPv6 format"}
    response = client.post("/api/ipv6-to-ipv4", content="{not json", headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_dns_check(make_client):
    body = make_client().get("/api/dns-check/example.com").json()
    assert len(body["resolvers"]) == 4
    assert body["resolvers"][0]["resolverName"] == "Google"
    assert body["consistency"]["consistent"] is True
    assert body["consistency"]["uniqueRecords"] == ["93.184.216.34"]


def test_health(make_client):
    body = make_client().get("/api/health").json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"
    assert set(body["tools"]) == {"dig", "ping", "traceroute", "whois"}
    assert body["uptime"] >= 0


def test_rate_limit_exempts_health(make_client):
    client = make_client(rate_limit=RateLimitConfig(max_requests=2, window_seconds=900))
    assert client.get("/api/ip-lookup/8.8.8.8").status_code == 200
    assert client.get("/api/ip-lookup/8.8.8.8").status_code == 200

    limited = client.get("/api/ip-lookup/8.8.8.8")
    assert limited.status_code == 429
    assert limited.json() == {"error": "Too many requests from this IP, please try again later."}

    assert client.get("/api/health").status_code == 200


def test_cached_result_is_reused(make_client):
    runner = FakeRunner({"dig A": "93.184.216.34\n"}, default="")
    client = make_client(_engine(runner=runner))
    first = client.get("/api/dns/example.com").json()
    calls = len(runner.calls)
    second = client.get("/api/dns/EXAMPLE.com").json()
    assert second == first
    assert len(runner.calls) == calls


def test_access_log_redacts_secret_query_params(make_client, tmp_path):
    log_file = tmp_path / "api.jsonl"
    logger = setup_logging("api", log_level="INFO", log_file=str(log_file), enable_console=False)
    try:
        client = make_client()
        assert client.get("/api/health?token=abc123&verbose=1").status_code == 200
        for handler in logger.handlers:
            handler.flush()
    finally:
        setup_logging("api")

    lines = [json.loads(line) for line in log_file.read_text().splitlines()]
    access = [line for line in lines if line.get("path") == "/api/health"][-1]
    assert access["query"] == {"token": REDACTED, "verbose": "1"}
    assert "abc123" not in log_file.read_text()
