import pytest

from mcpgw import state
from mcpgw.memory import CircuitBreakerStore, RateLimitStore, SessionStore


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# SessionStore


def test_session_track_and_count():
    s = SessionStore()
    s.track("s1")
    s.track("s2")
    assert s.count() == 2


def test_session_track_duplicate(clock):
    s = SessionStore(clock)
    s.track("s1")
    s.track("s1")
    assert s.count() == 1


def test_session_remove():
    s = SessionStore()
    s.track("s1")
    s.remove("s1")
    assert s.count() == 0


def test_session_remove_nonexistent():
    s = SessionStore()
    s.track("kept")
    s.remove("nonexistent")
    assert s.count() == 1


def test_session_touch(clock):
    s = SessionStore(clock)
    s.track("s1")
    clock.advance(10 * 60)
    s.touch("s1")
    assert s.cleanup(15 * 60) == 0
    assert s.count() == 1


def test_session_touch_nonexistent(clock):
    s = SessionStore(clock)
    s.touch("nonexistent")
    assert s.count() == 0


def test_session_cleanup(clock):
    s = SessionStore(clock)
    s.track("old")
    s.track("new")
    clock.advance(30 * 60)
    s.touch("new")
    assert s.cleanup(20 * 60) == 1
    assert s.count() == 1


def test_session_cleanup_all(clock):
    s = SessionStore(clock)
    s.track("s1")
    s.track("s2")
    clock.advance(60 * 60)
    assert s.cleanup(30 * 60) == 2
    assert s.count() == 0


# RateLimitStore


def test_rate_limit_allow_burst(clock):
    r = RateLimitStore(clock)
    assert [r.allow("key1", 1.0, 3) for _ in range(3)] == [True, True, True]
    assert r.allow("key1", 1.0, 3) is False


def test_rate_limit_allow_refill(clock):
    r = RateLimitStore(clock)
    assert r.allow("k", 1.0, 1) is True
    assert r.allow("k", 1.0, 1) is False
    clock.advance(1)
    assert r.allow("k", 1.0, 1) is True


def test_rate_limit_key_isolation(clock):
    r = RateLimitStore(clock)
    assert r.allow("key-a", 1.0, 1) is True
    assert r.allow("key-a", 1.0, 1) is False
    assert r.allow("key-b", 1.0, 1) is True


def test_rate_limit_cleanup(clock):
    r = RateLimitStore(clock)
    r.allow("old-key", 1.0, 1)
    r.allow("new-key", 1.0, 1)
    clock.advance(10 * 60)
    r.allow("new-key", 1.0, 1)
    assert r.cleanup(5 * 60) == 1
    assert r.allow("old-key", 1.0, 1) is True


def test_rate_limit_burst_cap(clock):
    r = RateLimitStore(clock)
    assert r.allow("k", 1.0, 2) is True
    assert r.allow("k", 1.0, 2) is True
    clock.advance(10)
    assert r.allow("k", 1.0, 2) is True
    assert r.allow("k", 1.0, 2) is True
    assert r.allow("k", 1.0, 2) is False


# CircuitBreakerStore


def test_cb_initial_closed():
    c = CircuitBreakerStore(3, 10)
    assert c.state("upstream-a") == "closed"
    assert c.allow("upstream-a") == (True, "closed")


def test_cb_open_after_max_failures(clock):
    c = CircuitBreakerStore(3, 10, clock)
    for _ in range(3):
        c.record_failure("up")
    assert c.allow("up") == (False, "open")


def test_cb_half_open_after_timeout(clock):
    c = CircuitBreakerStore(2, 5, clock)
    c.record_failure("up")
    c.record_failure("up")
    assert c.allow("up") == (False, "open")
    clock.advance(5)
    assert c.allow("up") == (True, "half-open")
    assert c.allow("up") == (False, "half-open")


def test_cb_success_resets_to_closed(clock):
    c = CircuitBreakerStore(2, 5, clock)
    c.record_failure("up")
    c.record_failure("up")
    clock.advance(5)
    assert c.allow("up")[0] is True
    c.record_success("up")
    assert c.allow("up") == (True, "closed")


def test_cb_failure_in_half_open_reopens(clock):
    c = CircuitBreakerStore(1, 5, clock)
    c.record_failure("up")
    assert c.allow("up") == (False, "open")
    clock.advance(5)
    assert c.allow("up") == (True, "half-open")
    c.record_failure("up")
    assert c.allow("up") == (False, "open")


def test_cb_upstream_isolation():
    c = CircuitBreakerStore(1, 10)
    c.record_failure("upstream-a")
    assert c.allow("upstream-a")[0] is False
    assert c.allow("upstream-b") == (True, "closed")


def test_cb_state_reflects_timeout(clock):
    c = CircuitBreakerStore(1, 5, clock)
    c.record_failure("up")
    assert c.state("up") == "open"
    clock.advance(5)
    assert c.state("up") == "half-open"
    # Reading the state does not admit the trial request on its own.
    assert c.allow("up") == (True, "half-open")


def test_cb_partial_failures():
    c = CircuitBreakerStore(3, 10)
    c.record_failure("up")
    c.record_failure("up")
    assert c.allow("up") == (True, "closed")
    c.record_success("up")
    c.record_failure("up")
    c.record_failure("up")
    assert c.allow("up") == (True, "closed")


# Interface compliance


def test_session_store_satisfies_protocol():
    s = SessionStore()
    assert isinstance(s, state.SessionStore)
    s.track("x")
    assert s.count() == 1


def test_rate_limit_store_satisfies_protocol():
    r = RateLimitStore()
    assert isinstance(r, state.RateLimitStore)
    assert r.allow("k", 1.0, 1) is True


def test_circuit_breaker_store_satisfies_protocol():
    c = CircuitBreakerStore(3, 10)
    assert isinstance(c, state.CircuitBreakerStore)
    assert c.state("up") == "closed"