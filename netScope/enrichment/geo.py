"""IP geolocation / ISP lookups via ip-api.com and public-IP discovery via ipify."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp

from netScope.enrichment import CircuitBreaker, RateLimiter
from netScope.errors import ProbeUnavailable, UpstreamDegraded
from netScope.logging_config import get_logger
from netScope.models import UNKNOWN, GeoRecord

logger = get_logger("geo")

DEFAULT_API_URL = "http://ip-api.com/json"
DEFAULT_ECHO_URL = "https://api.ipify.org?format=json"
DEFAULT_TIMEOUT_SECONDS = 5.0


def geo_record_from_ip_api(ip: str, data: Dict[str, Any]) -> GeoRecord:
    """Map an ip-api.com success payload onto a GeoRecord; gaps become sentinels."""
    return GeoRecord(
        ip=ip,
        country=data.get("country") or UNKNOWN,
        country_code=data.get("countryCode") or "XX",
        region=data.get("regionName") or UNKNOWN,
        city=data.get("city") or UNKNOWN,
        lat=float(data.get("lat") or 0.0),
        lon=float(data.get("lon") or 0.0),
        isp=data.get("isp") or "Unknown ISP",
        organization=data.get("org") or "Unknown Organization",
        timezone=data.get("timezone") or UNKNOWN,
        asn=data.get("as") or "AS0",
    )


class GeoClient:
    """
    Thin aiohttp wrapper around ip-api.com and the ipify echo service.

    `lookup()` raises UpstreamDegraded when ip-api answers with a non-200
    status, a non-"success" payload, or when the local circuit breaker /
    free-tier rate limiter refuses the call; it raises ProbeUnavailable on
    transport failures and timeouts. It never returns a partial record.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        echo_url: str = DEFAULT_ECHO_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        breaker: Optional[CircuitBreaker] = None,
        limiter: Optional[RateLimiter] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.echo_url = echo_url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.breaker = breaker or CircuitBreaker(name="ip_api", failure_threshold=5, recovery_time=120.0)
        self.limiter = limiter or RateLimiter(max_requests=45, window_seconds=60.0)
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def lookup(self, ip: str) -> GeoRecord:
        if self.breaker.is_open():
            logger.debug("ip-api.com circuit open", extra={"ip": ip, "outcome": "circuit_open"})
            raise UpstreamDegraded("Geolocation service temporarily disabled")
        if not self.limiter.try_acquire():
            logger.debug("ip-api.com rate limited", extra={"ip": ip, "outcome": "rate_limited"})
            raise UpstreamDegraded("Geolocation rate limit reached")

        session = await self._get_session()
        start_time = time.time()
        try:
            async with session.get(f"{self.api_url}/{ip}", timeout=self.timeout) as resp:
                if resp.status != 200:
                    self.breaker.record_failure()
                    logger.warning(
                        f"ip-api.com returned status {resp.status} for {ip}",
                        extra={"ip": ip, "status_code": resp.status, "outcome": "http_error"},
                    )
                    raise UpstreamDegraded(f"Geolocation API returned HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            self.breaker.record_failure()
            logger.warning(f"ip-api.com timeout for {ip}", extra={"ip": ip, "outcome": "timeout"})
            raise ProbeUnavailable("Geolocation lookup timed out") from exc
        except (aiohttp.ClientError, ValueError) as exc:
            self.breaker.record_failure()
            logger.warning(
                f"ip-api.com lookup failed for {ip}: {exc}",
                extra={"ip": ip, "outcome": "error", "error_type": type(exc).__name__},
            )
            raise ProbeUnavailable("Geolocation lookup failed", details=str(exc)) from exc

        if not isinstance(data, dict) or data.get("status") != "success":
            # Reserved / private ranges answer 200 with status "fail"
            logger.info(
                f"ip-api.com returned unsuccessful status for {ip}",
                extra={"ip": ip, "outcome": "api_fail"},
            )
            raise UpstreamDegraded("Geolocation API returned unsuccessful status")

        self.breaker.record_success()
        logger.info(
            f"ip-api.com lookup successful for {ip}",
            extra={"ip": ip, "duration": round((time.time() - start_time) * 1000, 2), "outcome": "success"},
        )
        return geo_record_from_ip_api(ip, data)

    async def discover_public_ip(self) -> str:
        """Ask the echo service which address our requests come from."""
        session = await self._get_session()
        try:
            async with session.get(self.echo_url, timeout=self.timeout) as resp:
                if resp.status != 200:
                    raise ProbeUnavailable(f"Public IP discovery returned HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            logger.warning("Public IP discovery timed out", extra={"outcome": "timeout"})
            raise ProbeUnavailable("Public IP discovery timed out") from exc
        except (aiohttp.ClientError, ValueError) as exc:
            logger.warning(
                f"Public IP discovery failed: {exc}",
                extra={"outcome": "error", "error_type": type(exc).__name__},
            )
            raise ProbeUnavailable("Public IP discovery failed", details=str(exc)) from exc

        ip = data.get("ip") if isinstance(data, dict) else None
        if not ip:
            raise ProbeUnavailable("Public IP discovery returned no address")
        logger.info("Public IP discovered", extra={"ip": ip, "outcome": "success"})
        return ip
