"""A minimal three-state circuit breaker for upstream requests."""

from __future__ import annotations

import enum
import threading
import time
from typing import Callable


class CircuitState(enum.Enum):
    """Circuit-breaker states; values are their display names."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitBreaker:
    """Opens after ``max_failures`` consecutive failures and retries after ``timeout`` seconds."""

    def __init__(
        self,
        max_failures: int,
        timeout: float,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._max_failures = max_failures
        self._timeout = timeout
        self._now = clock or time.monotonic
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    def allow(self) -> tuple[bool, CircuitState]:
        """Return whether a request may pass, together with the state that decided it."""
        with self._lock:
            if self._state is CircuitState.OPEN:
                if self._now() - self._opened_at >= self._timeout:
                    self._state = CircuitState.HALF_OPEN
                    return True, CircuitState.HALF_OPEN
                return False, CircuitState.OPEN
            if self._state is CircuitState.HALF_OPEN:
                # Only the single trial request passes while half-open.
                return False, CircuitState.HALF_OPEN
            return True, CircuitState.CLOSED

    def record_success(self) -> None:
        """Reset the failure count and close the breaker."""
        with self._lock:
            self._failures = 0
            self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Count a failure, opening the breaker once the limit is reached."""
        with self._lock:
            self._failures += 1
            if self._failures >= self._max_failures:
                self._state = CircuitState.OPEN
                self._opened_at = self._now()

    def state(self) -> str:
        """Return the current state name."""
        with self._lock:
            return self._state.value


class DisabledCircuitBreaker:
    """A breaker that always lets requests through; it only tallies outcomes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.successes = 0
        self.failures = 0

    def allow(self) -> tuple[bool, CircuitState]:
        """Always allow, reporting the closed state."""
        return True, CircuitState.CLOSED

    def record_success(self) -> None:
        """Tally a success; it never changes whether requests pass."""
        with self._lock:
            self.successes += 1

    def record_failure(self) -> None:
        """Tally a failure; it never opens the breaker."""
        with self._lock:
            self.failures += 1

    def state(self) -> str:
        """Return "disabled"."""
        return "disabled"