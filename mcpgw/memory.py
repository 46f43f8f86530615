"""In-memory implementations of the state stores, for single-process deployments."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from mcpgw.circuitbreaker import CircuitState

Clock = Callable[[], float]


@dataclass
class _TokenBucket:
    tokens: float
    last_time: float


@dataclass
class _CircuitEntry:
    state: CircuitState = CircuitState.CLOSED
    failures: int = 0
    opened_at: float = 0.0


class SessionStore:
    """In-memory session store mapping session ids to their last-access time."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._now = clock or time.monotonic
        self._lock = threading.Lock()
        self._sessions: dict[str, float] = {}

    def track(self, sid: str) -> None:
        """Start tracking a session, or refresh its last-access time."""
        with self._lock:
            self._sessions[sid] = self._now()

    def remove(self, sid: str) -> None:
        """Stop tracking a session; unknown sessions are ignored."""
        with self._lock:
            self._sessions.pop(sid, None)

    def count(self) -> int:
        """Return the number of tracked sessions."""
        with self._lock:
            return len(self._sessions)

    def touch(self, sid: str) -> None:
        """Refresh the last-access time of a tracked session."""
        with self._lock:
            if sid in self._sessions:
                self._sessions[sid] = self._now()

    def cleanup(self, ttl: float) -> int:
        """Remove sessions idle for longer than ``ttl`` seconds; return the count removed."""
        with self._lock:
            cutoff = self._now() - ttl
            expired = [sid for sid, last in self._sessions.items() if last < cutoff]
            for sid in expired:
                del self._sessions[sid]
            return len(expired)


class RateLimitStore:
    """In-memory token-bucket rate limiter keyed by arbitrary strings."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._now = clock or time.monotonic
        self._lock = threading.Lock()
        self._buckets: dict[str, _TokenBucket] = {}

    def allow(self, key: str, rate: float, burst: int) -> bool:
        """Return whether a request for ``key`` may pass, consuming one token if so."""
        with self._lock:
            now = self._now()
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _TokenBucket(tokens=float(burst), last_time=now)
                self._buckets[key] = bucket

            elapsed = max(now - bucket.last_time, 0.0)
            bucket.tokens = min(bucket.tokens + elapsed * rate, float(burst))
            bucket.last_time = now

            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return True
            return False

    def cleanup(self, max_age: float) -> int:
        """Drop buckets not used for ``max_age`` seconds; return the count removed."""
        with self._lock:
            cutoff = self._now() - max_age
            stale = [k for k, b in self._buckets.items() if b.last_time < cutoff]
            for key in stale:
                del self._buckets[key]
            return len(stale)


class CircuitBreakerStore:
    """In-memory circuit breakers, one per upstream."""

    def __init__(self, max_failures: int, timeout: float, clock: Clock | None = None) -> None:
        self._max_failures = max_failures
        self._timeout = timeout
        self._now = clock or time.monotonic
        self._lock = threading.Lock()
        self._entries: dict[str, _CircuitEntry] = {}

    def _entry(self, upstream: str) -> _CircuitEntry:
        return self._entries.setdefault(upstream, _CircuitEntry())

    def record_success(self, upstream: str) -> None:
        """Record a success and reset the breaker to closed."""
        with self._lock:
            entry = self._entry(upstream)
            entry.failures = 0
            entry.state = CircuitState.CLOSED

    def record_failure(self, upstream: str) -> None:
        """Record a failure, opening the breaker once the failure limit is reached."""
        with self._lock:
            entry = self._entry(upstream)
            entry.failures += 1
            if entry.failures >= self._max_failures:
                entry.state = CircuitState.OPEN
                entry.opened_at = self._now()

    def allow(self, upstream: str) -> tuple[bool, str]:
        """Return ``(allowed, state)``; an expired open breaker admits one trial request."""
        with self._lock:
            entry = self._entry(upstream)
            if entry.state is CircuitState.OPEN:
                if self._now() - entry.opened_at >= self._timeout:
                    entry.state = CircuitState.HALF_OPEN
                    return True, CircuitState.HALF_OPEN.value
                return False, CircuitState.OPEN.value
            if entry.state is CircuitState.HALF_OPEN:
                return False, CircuitState.HALF_OPEN.value
            return True, CircuitState.CLOSED.value

    def state(self, upstream: str) -> str:
        """Return the breaker state without changing it; unknown upstreams are "closed"."""
        with self._lock:
            entry = self._entries.get(upstream)
            if entry is None:
                return CircuitState.CLOSED.value
            if entry.state is CircuitState.OPEN and self._now() - entry.opened_at >= self._timeout:
                return CircuitState.HALF_OPEN.value
            return entry.state.value