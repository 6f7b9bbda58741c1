import asyncio
import errno
from types import SimpleNamespace

import aiohttp

from netScope.models import PortState
from netScope.probes import process as process_module
from netScope.probes.http import HttpProber
from netScope.probes.ports import PortProber
from netScope.probes.process import ProcessRunner


class FakeStream:
    def __init__(self, data: bytes, chunk: int = 4):
        self.data = data
        self.chunk = chunk

    async def read(self, n: int) -> bytes:
        piece, self.data = self.data[: min(n, self.chunk)], self.data[min(n, self.chunk):]
        return piece


class HangingStream:
    async def read(self, n: int) -> bytes:
        await asyncio.sleep(3600)
        return b""


class FakeProcess:
    def __init__(self, stdout, returncode: int = 0):
        self.stdout = stdout
        self._returncode = returncode
        self.returncode = None
        self.killed = False

    async def wait(self) -> int:
        self.returncode = -9 if self.killed else self._returncode
        return self.returncode

    def kill(self) -> None:
        self.killed = True


def _patch_exec(monkeypatch, factory):
    async def fake_exec(*cmd, **kwargs):
        return factory(cmd)

    monkeypatch.setattr(process_module.asyncio, "create_subprocess_exec", fake_exec)


def test_runner_returns_stdout(monkeypatch):
    _patch_exec(monkeypatch, lambda cmd: FakeProcess(FakeStream(b"93.184.216.34\n")))
    assert asyncio.run(ProcessRunner().run(["dig", "+short", "example.com", "A"])) == "93.184.216.34\n"


def test_runner_missing_tool(monkeypatch):
    def missing(cmd):
        raise FileNotFoundError(cmd[0])

    _patch_exec(monkeypatch, missing)
    assert asyncio.run(ProcessRunner().run(["whois", "example.com"])) is None


def test_runner_other_os_error(monkeypatch):
    def too_long(cmd):
        raise OSError(errno.E2BIG, "Argument list too long")

    _patch_exec(monkeypatch, too_long)
    assert asyncio.run(ProcessRunner().run(["whois", "example.com"])) is None


def test_runner_non_zero_exit(monkeypatch):
    _patch_exec(monkeypatch, lambda cmd: FakeProcess(FakeStream(b"partial"), returncode=2))
    assert asyncio.run(ProcessRunner().run(["ping", "example.com"])) is None


def test_runner_timeout_kills_process(monkeypatch):
    procs = []

    def factory(cmd):
        proc = FakeProcess(HangingStream())
        procs.append(proc)
        return proc

    _patch_exec(monkeypatch, factory)
    result = asyncio.run(ProcessRunner(timeout_seconds=0.05).run(["traceroute", "example.com"]))
    assert result is None
    assert procs[0].killed


def test_runner_output_cap(monkeypatch):
    procs = []

    def factory(cmd):
        proc = FakeProcess(FakeStream(b"x" * 64, chunk=16))
        procs.append(proc)
        return proc

    _patch_exec(monkeypatch, factory)
    assert asyncio.run(ProcessRunner(max_output_bytes=32).run(["whois", "example.com"])) is None
    assert procs[0].killed


def test_runner_invalid_utf8(monkeypatch):
    _patch_exec(monkeypatch, lambda cmd: FakeProcess(FakeStream(b"\xff\xfe\xfa")))
    assert asyncio.run(ProcessRunner().run(["whois", "example.com"])) is None


class FakeWriter:
    def __init__(self):
        self.closed = False

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None


def test_port_states_follow_connect_outcome():
    writers = []

    async def connector(host, port):
        if port == 80:
            writer = FakeWriter()
            writers.append(writer)
            return object(), writer
        if port == 22:
            await asyncio.sleep(3600)
        raise ConnectionRefusedError()

    prober = PortProber(ports=[80, 22, 25], timeout_seconds=0.05, connector=connector)
    states = asyncio.run(prober.probe("example.com"))
    assert list(states) == [80, 22, 25]
    assert states == {80: PortState.OPEN, 22: PortState.FILTERED, 25: PortState.CLOSED}
    assert writers[0].closed


def test_port_probe_unresolvable_host_is_closed():
    async def connector(host, port):
        raise OSError("Name or service not known")

    prober = PortProber(ports=[443], timeout_seconds=1, connector=connector)
    assert asyncio.run(prober.probe("nonexistent.invalid")) == {443: PortState.CLOSED}


class SlowCloseWriter(FakeWriter):
    async def wait_closed(self) -> None:
        await asyncio.sleep(3600)


def test_port_open_when_close_handshake_hangs():
    writer = SlowCloseWriter()

    async def connector(host, port):
        return object(), writer

    prober = PortProber(ports=[443], timeout_seconds=0.05, connector=connector)
    assert asyncio.run(prober.probe("example.com")) == {443: PortState.OPEN}
    assert writer.closed


# HTTP

class FakeResponse:
    def __init__(self, status=200, reason="OK", headers=None, error=None):
        self.status = status
        self.reason = reason
        self.headers = headers or {}
        self.error = error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response: FakeResponse):
        self.response = response
        self.closed = False
        self.requests = []

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        return self.response


def _check(response: FakeResponse, **kwargs):
    session = FakeSession(response)
    status = asyncio.run(HttpProber(session=session, **kwargs).check("example.com"))
    return status, session


def test_http_success_records_status_and_headers():
    headers = {"Server": "nginx", "Content-Type": "text/html", "Date": "x", "ETag": "y",
               "Cache-Control": "no-cache", "Vary": "Accept", "X-Frame-Options": "DENY"}
    status, session = _check(FakeResponse(headers=headers), max_redirects=3)
    assert status.status == 200
    assert status.status_text == "OK"
    assert status.headers == ["server", "content-type", "date", "etag", "cache-control"]
    assert status.response_time >= 0
    url, kwargs = session.requests[0]
    assert url == "http://example.com"
    assert kwargs["allow_redirects"] is True
    assert kwargs["max_redirects"] == 3


def test_http_error_status_is_kept():
    status, _ = _check(FakeResponse(status=503, reason="Service Unavailable"))
    assert status.status == 503
    assert status.status_text == "Service Unavailable"


def test_http_timeout_is_status_zero():
    status, _ = _check(FakeResponse(error=asyncio.TimeoutError()))
    assert status.status == 0
    assert status.status_text == "Request timed out"
    assert status.headers == []


def test_http_redirect_loop_is_status_zero():
    request_info = SimpleNamespace(real_url="http://loop.example/")
    status, _ = _check(FakeResponse(error=aiohttp.TooManyRedirects(request_info, ())))
    assert status.status == 0
    assert status.status_text


def test_http_connection_error_text_is_reported():
    status, _ = _check(FakeResponse(error=aiohttp.ClientConnectionError("Connection refused")))
    assert status.status == 0
    assert status.status_text == "Connection refused"
