"""Bounded execution of external network tools."""
from __future__ import annotations

import asyncio
import time
from typing import Optional, Sequence

from netScope.logging_config import get_logger

logger = get_logger("runner")

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
_READ_CHUNK_BYTES = 64 * 1024


class OutputTooLarge(Exception):
    """Child process wrote more than the configured cap to stdout."""


class ProcessRunner:
    """
    Run one command as a child process with a hard timeout and output cap.

    `run()` returns the decoded stdout, or None when the command could not be
    started, exited non-zero, timed out, exceeded the output cap or produced
    invalid UTF-8. Callers treat None as "probe unavailable".

    There is no pooling: every call spawns exactly one process.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_output_bytes = max_output_bytes

    async def run(
        self,
        cmd: Sequence[str],
        *,
        timeout_seconds: Optional[float] = None,
        max_output_bytes: Optional[int] = None,
    ) -> Optional[str]:
        timeout = timeout_seconds or self.timeout_seconds
        cap = max_output_bytes or self.max_output_bytes
        cmd_str = " ".join(cmd)

        logger.debug("Executing subprocess command", extra={"command": cmd_str})
        start_time = time.time()

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning(
                "Command not available",
                extra={"command": cmd_str, "outcome": "not_available", "error_type": type(exc).__name__},
            )
            return None

        try:
            raw = await asyncio.wait_for(self._collect(process, cap), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.warning(
                "Subprocess timed out",
                extra={"command": cmd_str, "duration": round(timeout * 1000, 2), "outcome": "timeout"},
            )
            return None
        except OutputTooLarge:
            await self._kill(process)
            logger.warning(
                "Subprocess output exceeded cap",
                extra={"command": cmd_str, "output_length": cap, "outcome": "oversized"},
            )
            return None

        duration = round((time.time() - start_time) * 1000, 2)
        if process.returncode != 0:
            logger.warning(
                "Subprocess exited with non-zero code",
                extra={"command": cmd_str, "exit_code": process.returncode, "duration": duration, "outcome": "error"},
            )
            return None

        try:
            output = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Subprocess output is not valid UTF-8", extra={"command": cmd_str, "outcome": "decode_error"})
            return None

        logger.info(
            "Subprocess completed",
            extra={
                "command": cmd_str,
                "exit_code": 0,
                "duration": duration,
                "output_length": len(output),
                "outcome": "success",
            },
        )
        return output

    @staticmethod
    async def _collect(process: asyncio.subprocess.Process, cap: int) -> bytes:
        assert process.stdout is not None
        buffer = bytearray()
        while True:
            chunk = await process.stdout.read(_READ_CHUNK_BYTES)
            if not chunk:
                break
            buffer.extend(chunk)
            if len(buffer) > cap:
                raise OutputTooLarge()
        await process.wait()
        return bytes(buffer)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()
