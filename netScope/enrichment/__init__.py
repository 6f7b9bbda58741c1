"""
Enrichment module for netScope: third-party lookups (geolocation, ISP,
public-IP echo) and the resilience helpers they share.

- CircuitBreaker: fail fast while an external API keeps failing
- RateLimiter: sliding-window limiter, used for the ip-api.com free tier
- KeyedRateLimiter: one RateLimiter per client address, used by the API
"""
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict

from netScope.logging_config import get_logger

logger = get_logger("enrichment")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Trips after `failure_threshold` consecutive failures.

    While open, `is_open()` is True until `recovery_time` seconds have passed
    since the last failure; then the breaker goes half-open and admits up to
    `half_open_max_calls` trial calls. The first recorded outcome of a trial
    decides: success closes the breaker, failure opens it again.

        if breaker.is_open():
            raise UpstreamDegraded(...)
        try:
            data = await fetch()
        except aiohttp.ClientError:
            breaker.record_failure()
            raise
        breaker.record_success()
    """
    name: str
    failure_threshold: int = 5
    recovery_time: float = 60.0
    half_open_max_calls: int = 1
    clock: Callable[[], float] = time.time

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _consecutive_failures: int = field(default=0, init=False)
    _last_failure_at: float = field(default=0.0, init=False)
    _trial_calls: int = field(default=0, init=False)

    @property
    def state(self) -> CircuitState:
        return self._state

    def _set_state(self, state: CircuitState, outcome: str) -> None:
        self._state = state
        self._trial_calls = 0
        log = logger.warning if state == CircuitState.OPEN else logger.info
        log(f"Circuit '{self.name}' is now {state.value}", extra={"state": state.value, "outcome": outcome})

    def is_open(self) -> bool:
        if self._state == CircuitState.OPEN:
            if self.clock() - self._last_failure_at < self.recovery_time:
                return True
            self._set_state(CircuitState.HALF_OPEN, "probing")

        if self._state == CircuitState.HALF_OPEN:
            if self._trial_calls >= self.half_open_max_calls:
                return True
            self._trial_calls += 1

        return False

    def record_success(self) -> None:
        self._consecutive_failures = 0
        if self._state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.CLOSED, "recovered")

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        self._last_failure_at = self.clock()
        if self._state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.OPEN, "recovery_failed")
        elif self._state == CircuitState.CLOSED and self._consecutive_failures >= self.failure_threshold:
            self._set_state(CircuitState.OPEN, "tripped")


@dataclass
class RateLimiter:
    """At most `max_requests` acquisitions in any `window_seconds` span."""
    max_requests: int
    window_seconds: float = 60.0
    clock: Callable[[], float] = time.time

    _stamps: Deque[float] = field(default_factory=deque, init=False)

    def _expire(self, now: float) -> None:
        while self._stamps and self._stamps[0] <= now - self.window_seconds:
            self._stamps.popleft()

    def try_acquire(self) -> bool:
        now = self.clock()
        self._expire(now)
        if len(self._stamps) >= self.max_requests:
            return False
        self._stamps.append(now)
        return True


@dataclass
class KeyedRateLimiter:
    """Independent sliding windows per key (client address)."""
    max_requests: int
    window_seconds: float = 60.0
    clock: Callable[[], float] = time.time

    _windows: Dict[str, RateLimiter] = field(default_factory=dict, init=False)
    _last_sweep: float = field(default=0.0, init=False)

    def _sweep(self, now: float) -> None:
        # Idle clients are forgotten once per window
        for key, window in list(self._windows.items()):
            window._expire(now)
            if not window._stamps:
                del self._windows[key]
        self._last_sweep = now

    def try_acquire(self, key: str) -> bool:
        now = self.clock()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        window = self._windows.get(key)
        if window is None:
            window = self._windows[key] = RateLimiter(self.max_requests, self.window_seconds, self.clock)
        return window.try_acquire()
