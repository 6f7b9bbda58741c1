"""Concurrent TCP connect probing of a fixed port set."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Optional, Sequence, Tuple

from netScope.logging_config import get_logger
from netScope.models import PortState

logger = get_logger("prober")

DEFAULT_PORTS: Tuple[int, ...] = (80, 443, 22, 21, 25, 53, 993, 995)
DEFAULT_TIMEOUT_SECONDS = 5.0

Connector = Callable[[str, int], Awaitable[Tuple[asyncio.StreamReader, asyncio.StreamWriter]]]


class PortProber:
    """
    Classify each port as Open, Filtered or Closed.

    - connect succeeds          -> Open (closed immediately, no data sent)
    - no answer before timeout  -> Filtered
    - refused or other failure  -> Closed

    Each probe has its own timeout; a slow port never delays or cancels its
    siblings beyond that timeout.
    """

    def __init__(
        self,
        ports: Sequence[int] = DEFAULT_PORTS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        connector: Optional[Connector] = None,
    ) -> None:
        self.ports = tuple(ports)
        self.timeout_seconds = timeout_seconds
        self._connect: Connector = connector or asyncio.open_connection

    async def probe_port(self, host: str, port: int) -> PortState:
        try:
            _, writer = await asyncio.wait_for(self._connect(host, port), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            state = PortState.FILTERED
        except (OSError, ValueError):
            state = PortState.CLOSED
        else:
            state = PortState.OPEN
            writer.close()
            try:
                await asyncio.wait_for(writer.wait_closed(), timeout=self.timeout_seconds)
            except (asyncio.TimeoutError, OSError):
                pass

        logger.debug("Port probed", extra={"target": host, "port": port, "state": state.value})
        return state

    async def probe(self, host: str) -> Dict[int, PortState]:
        """Probe every configured port in parallel; keys follow the configured port order."""
        states = await asyncio.gather(*(self.probe_port(host, port) for port in self.ports))
        result = dict(zip(self.ports, states))
        logger.info(
            "Port probe completed",
            extra={
                "target": host,
                "outcome": "success",
                "record_count": sum(1 for s in states if s == PortState.OPEN),
            },
        )
        return result
