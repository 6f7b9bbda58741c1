"""Best-effort HTTP reachability check for a bare domain."""
from __future__ import annotations

import asyncio
import time
from typing import Optional

import aiohttp

from netScope.logging_config import get_logger
from netScope.models import HttpStatus

logger = get_logger("http_probe")

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_REDIRECTS = 5
MAX_HEADER_NAMES = 5


class HttpProber:
    """
    GET http://<domain>/ following up to `max_redirects` redirects.

    Never raises: any response is recorded with its status and reason, and a
    transport failure (timeout, DNS, refused, redirect loop) becomes status 0
    with the error text.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.max_redirects = max_redirects
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def check(self, domain: str) -> HttpStatus:
        url = f"http://{domain}"
        session = await self._get_session()
        start_time = time.time()
        try:
            async with session.get(
                url,
                timeout=self.timeout,
                allow_redirects=True,
                max_redirects=self.max_redirects,
            ) as resp:
                elapsed = round((time.time() - start_time) * 1000, 2)
                result = HttpStatus(
                    status=resp.status,
                    status_text=resp.reason or "",
                    response_time=elapsed,
                    headers=[name.lower() for name in list(resp.headers.keys())[:MAX_HEADER_NAMES]],
                )
        except asyncio.TimeoutError:
            logger.warning("HTTP probe timed out", extra={"target": domain, "outcome": "timeout"})
            return HttpStatus(status=0, status_text="Request timed out")
        except aiohttp.ClientError as exc:
            logger.warning(
                f"HTTP probe failed: {exc}",
                extra={"target": domain, "outcome": "error", "error_type": type(exc).__name__},
            )
            return HttpStatus(status=0, status_text=str(exc) or type(exc).__name__)

        logger.info(
            "HTTP probe completed",
            extra={"target": domain, "status_code": result.status, "duration": result.response_time, "outcome": "success"},
        )
        return result
