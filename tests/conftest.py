"""Shared fakes: no test spawns a process, opens a socket or calls an API."""
import os
import tempfile

# Must be set before any netScope logger is created
os.environ.setdefault("NETSCOPE_LOG_FILE", os.path.join(tempfile.gettempdir(), "netscope-tests.jsonl"))
os.environ.setdefault("NETSCOPE_LOG_LEVEL", "WARNING")

from typing import Dict, List, Optional, Sequence  # noqa: E402

import pytest  # noqa: E402

from netScope.models import HttpStatus, PortState  # noqa: E402


class FakeRunner:
    """Maps a command's leading tokens to canned stdout (None = tool failed)."""

    def __init__(self, outputs: Optional[Dict[str, Optional[str]]] = None, default: Optional[str] = None):
        self.outputs = outputs or {}
        self.default = default
        self.calls: List[List[str]] = []

    def _key(self, cmd: Sequence[str]) -> str:
        if cmd[0] == "dig" and cmd[1] == "+short":
            return f"dig {cmd[-1]}"
        if cmd[0] == "dig":
            return "dig +trace"
        return cmd[0]

    async def run(self, cmd: Sequence[str]) -> Optional[str]:
        self.calls.append(list(cmd))
        return self.outputs.get(self._key(cmd), self.default)


class FakeHttpProber:
    def __init__(self, status: Optional[HttpStatus] = None):
        self.status = status or HttpStatus(status=200, status_text="OK", response_time=12.5, headers=["server"])
        self.closed = False

    async def check(self, domain: str) -> HttpStatus:
        return self.status

    async def close(self) -> None:
        self.closed = True


class FakePortProber:
    def __init__(self, states: Optional[Dict[int, PortState]] = None):
        self.states = states or {80: PortState.OPEN, 443: PortState.OPEN, 22: PortState.FILTERED}

    async def probe(self, host: str) -> Dict[int, PortState]:
        return dict(self.states)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
