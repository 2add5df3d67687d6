"""
Per-jurisdiction circuit breaker.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from registry.errors import CircuitOpenError
from registry.logging_utils import log_event

logger = logging.getLogger(__name__)


class CircuitStatus(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerPolicy:
    failure_threshold: int = 3
    reset_timeout: float = 60.0
    success_threshold: int = 1


@dataclass
class CircuitState:
    state: CircuitStatus = CircuitStatus.CLOSED
    failures: int = 0
    successes: int = 0
    total_failures: int = 0
    last_failure_at: float | None = None
    last_error: str | None = None
    opened_at: float | None = None
    next_attempt_at: float | None = None
    probe_in_flight: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


@dataclass(frozen=True)
class CircuitInfo:
    source: str
    state: CircuitStatus
    failures: int
    time_until_retry: float
    last_error: str | None = None


class CircuitBreaker:
    """
    Closed -> Open after ``failure_threshold`` consecutive failures.

    Open rejects everything until ``reset_timeout`` elapses, then admits a
    single probe (Half-Open). The probe's success closes the circuit; its
    failure reopens it and restarts the timeout. Each jurisdiction has its
    own lock, so transitions for one code never wait on another.
    """

    def __init__(
        self,
        *,
        policy: CircuitBreakerPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy or CircuitBreakerPolicy()
        self._states: dict[str, CircuitState] = {}
        self._clock = clock

    @property
    def policy(self) -> CircuitBreakerPolicy:
        return self._policy

    def _state(self, code: str) -> CircuitState:
        key = code.lower()
        state = self._states.get(key)
        if state is None:
            state = CircuitState()
            self._states[key] = state
        return state

    def _open(self, code: str, state: CircuitState, now: float) -> None:
        state.state = CircuitStatus.OPEN
        state.opened_at = now
        state.next_attempt_at = now + self._policy.reset_timeout
        state.successes = 0
        state.probe_in_flight = False
        log_event(
            logger,
            logging.WARNING,
            "circuit_opened",
            source=code,
            failures=state.failures,
            reset_timeout_seconds=self._policy.reset_timeout,
            last_error=state.last_error,
        )

    def _close(self, code: str, state: CircuitState) -> None:
        state.state = CircuitStatus.CLOSED
        state.failures = 0
        state.successes = 0
        state.opened_at = None
        state.next_attempt_at = None
        state.probe_in_flight = False
        log_event(logger, logging.INFO, "circuit_closed", source=code)

    def _time_until_retry(self, state: CircuitState, now: float) -> float:
        if state.state is not CircuitStatus.OPEN or state.next_attempt_at is None:
            return 0.0
        return max(0.0, state.next_attempt_at - now)

    async def allow_request(self, code: str) -> bool:
        """
        Admission check. In Half-Open only one caller at a time gets ``True``.
        """

        key = code.lower()
        state = self._state(key)
        async with state.lock:
            now = self._clock()
            if state.state is CircuitStatus.CLOSED:
                return True
            if state.state is CircuitStatus.OPEN:
                if state.next_attempt_at is not None and now < state.next_attempt_at:
                    return False
                state.state = CircuitStatus.HALF_OPEN
                state.successes = 0
                state.probe_in_flight = True
                log_event(logger, logging.INFO, "circuit_half_open", source=key)
                return True
            if state.probe_in_flight:
                return False
            state.probe_in_flight = True
            return True

    async def check(self, code: str) -> None:
        """
        Raise ``CircuitOpenError`` unless a request for ``code`` is admitted.
        """

        if await self.allow_request(code):
            return
        info = self.info(code)
        raise CircuitOpenError(
            f"Circuit breaker open for '{code.lower()}'; retry in {info.time_until_retry:.0f}s.",
            source=code.lower(),
            retry_after=info.time_until_retry,
        )

    async def record_success(self, code: str) -> None:
        key = code.lower()
        state = self._state(key)
        async with state.lock:
            if state.state is CircuitStatus.HALF_OPEN:
                state.successes += 1
                state.probe_in_flight = False
                if state.successes >= self._policy.success_threshold:
                    self._close(key, state)
                return
            state.failures = 0

    async def record_failure(self, code: str, error: BaseException | str | None = None) -> None:
        key = code.lower()
        state = self._state(key)
        async with state.lock:
            now = self._clock()
            state.failures += 1
            state.total_failures += 1
            state.last_failure_at = now
            if error is not None:
                state.last_error = str(error)
            log_event(
                logger,
                logging.DEBUG,
                "circuit_failure_recorded",
                source=key,
                failures=state.failures,
                state=state.state.value,
            )
            if state.state is CircuitStatus.HALF_OPEN:
                self._open(key, state, now)
            elif state.state is CircuitStatus.CLOSED and state.failures >= self._policy.failure_threshold:
                self._open(key, state, now)

    async def release(self, code: str) -> None:
        """
        Give back a Half-Open probe slot that never reached the network.
        """

        key = code.lower()
        state = self._state(key)
        async with state.lock:
            if state.state is CircuitStatus.HALF_OPEN:
                state.probe_in_flight = False

    def is_allowed(self, code: str) -> bool:
        """
        Read-only view of admission; does not claim a Half-Open probe.
        """

        state = self._states.get(code.lower())
        if state is None or state.state is CircuitStatus.CLOSED:
            return True
        if state.state is CircuitStatus.OPEN:
            return self._time_until_retry(state, self._clock()) <= 0
        return not state.probe_in_flight

    def info(self, code: str) -> CircuitInfo:
        key = code.lower()
        state = self._states.get(key) or CircuitState()
        return CircuitInfo(
            source=key,
            state=state.state,
            failures=state.failures,
            time_until_retry=self._time_until_retry(state, self._clock()),
            last_error=state.last_error,
        )

    def force_open(self, code: str) -> None:
        key = code.lower()
        state = self._state(key)
        state.failures = max(state.failures, self._policy.failure_threshold)
        self._open(key, state, self._clock())

    def reset(self, code: str) -> None:
        self._states.pop(code.lower(), None)
        log_event(logger, logging.INFO, "circuit_reset", source=code.lower())

    def reset_all(self) -> None:
        self._states.clear()

    def stats(self) -> dict[str, dict[str, object]]:
        now = self._clock()
        return {
            code: {
                "state": state.state.value,
                "failures": state.failures,
                "total_failures": state.total_failures,
                "time_until_retry": round(self._time_until_retry(state, now), 3),
                "last_error": state.last_error,
            }
            for code, state in self._states.items()
        }
