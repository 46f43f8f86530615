"""Backend-neutral interfaces for session, rate-limit and circuit-breaker state.

Durations are expressed in seconds. Implementations must be thread-safe.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Tracks, removes and counts client sessions."""

    def track(self, sid: str) -> None:
        """Start tracking a session, or refresh its last-access time."""
        ...

    def remove(self, sid: str) -> None:
        """Stop tracking a session; unknown sessions are ignored."""
        ...

    def count(self) -> int:
        """Return the number of tracked sessions."""
        ...

    def touch(self, sid: str) -> None:
        """Refresh the last-access time of a tracked session; unknown sessions are ignored."""
        ...

    def cleanup(self, ttl: float) -> int:
        """Remove sessions idle for longer than ``ttl`` seconds and return how many were removed."""
        ...


@runtime_checkable
class RateLimitStore(Protocol):
    """Per-key token-bucket rate limiting."""

    def allow(self, key: str, rate: float, burst: int) -> bool:
        """Return whether a request for ``key`` may pass, consuming one token if so.

        ``rate`` is the refill rate in tokens per second, ``burst`` the bucket capacity.
        """
        ...


@runtime_checkable
class CircuitBreakerStore(Protocol):
    """Per-upstream circuit-breaker state."""

    def record_success(self, upstream: str) -> None:
        """Record a success and reset the breaker to closed."""
        ...

    def record_failure(self, upstream: str) -> None:
        """Record a failure, opening the breaker once the failure limit is reached."""
        ...

    def allow(self, upstream: str) -> tuple[bool, str]:
        """Return ``(allowed, state)`` where state is "closed", "open" or "half-open"."""
        ...

    def state(self, upstream: str) -> str:
        """Return the breaker state for ``upstream``; unknown upstreams are "closed"."""
        ...