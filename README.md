# mcpgw

This package provides components for a gateway that sits in front of Model
Context Protocol (MCP) servers. It uses only the standard library. All
durations are given in seconds.

## Modules

- `mcpgw.state` defines the store interfaces as `typing.Protocol` classes
  that can be checked at runtime:
  - `SessionStore`, with `track`, `remove`, `count`, `touch` and `cleanup`.
  - `RateLimitStore`, with `allow`.
  - `CircuitBreakerStore`, with `record_success`, `record_failure`, `allow`
    and `state`.
- `mcpgw.memory` implements those interfaces in memory. Each class is
  thread-safe and takes an optional `clock` callable. The default clock is
  `time.monotonic`.
  - `SessionStore` tracks session ids together with their last-access time.
  - `RateLimitStore` keeps one token bucket per key. Its `cleanup(max_age)`
    drops idle buckets.
  - `CircuitBreakerStore(max_failures, timeout)` keeps one breaker per
    upstream. `allow` returns `(allowed, state)`. `state` reports
    `"half-open"` once the open timeout has passed, but it does not change the
    breaker.
- `mcpgw.circuitbreaker` has the following:
  - `CircuitState`, an enum with the values `"closed"`, `"open"` and
    `"half-open"`.
  - `CircuitBreaker(max_failures, timeout)`. It opens after `max_failures`
    failures. Once `timeout` has passed it lets a single trial request through
    (half-open). A success closes it again.
  - `DisabledCircuitBreaker`. It always allows requests and only counts
    `successes` and `failures`. Its `state()` returns `"disabled"`.
- `mcpgw.sse` has the following:
  - `SSEEvent`, with the fields `id`, `event` and `data`.
  - `read_events(stream)` yields events from any iterable of text or byte
    lines. It skips comment lines. It still yields an event that is left
    unterminated at the end of the stream. It raises `ValueError` for a line
    longer than 1 MiB.
  - `parse_field(line)` splits a line into its field and value.
  - `format_event(event)` renders an event in wire format.
- `mcpgw.cors` has the following:
  - `CORSMiddleware(origins)` wraps WSGI applications. It raises `ValueError`
    when there are no origins, and `"*"` allows any origin.
    - For an allowed origin it adds the `Access-Control-*` headers and
      `Vary: Origin`.
    - It answers an `OPTIONS` preflight from an allowed origin itself with
      `204 No Content`.
  - `build_cors_middleware(origins)` returns `None` when the origin list is
    empty or `None`, which leaves CORS disabled.
- `mcpgw.routing` has the following:
  - `Route(match_tools, upstream)` and `Router(routes, default_upstream)`.
    `Router.resolve(method, params)` routes `tools/call` requests by tool name
    and the first matching route wins. All other requests go to the default
    upstream. Trailing slashes are removed from upstream URLs.
  - The helpers `glob_match` (case-sensitive shell globs) and
    `extract_tool_name` (takes a JSON string, bytes or a mapping).
- `mcpgw.servereval` has the following:
  - `score_tool(name)` returns `"high"`, `"medium"` or `"low"`, based on glob
    patterns such as `exec_*` and `list_*`.
  - `score_tools(tools)` returns the highest level among the tools and the
    mean score. The scores are 0.9 for high, 0.5 for medium and 0.2 for low.
  - `ToolInfo` and `ServerInfo` are dataclasses.
  - `ServerStore` is a thread-safe store keyed by upstream URL, with `get`,
    `set`, `list` and `update_status`.
- `mcpgw.telemetry` has the following:
  - `TraceContext` and `TracerConfig`.
  - The `Span` and `Tracer` protocols, and `NoopTracer` and `NoopSpan`, which
    assign random ids and export nothing.
  - `set_global_tracer`, `global_tracer` and `init_tracer`, which returns a
    shutdown function.
  - `generate_id`.
  - `parse_traceparent`, which raises `ValueError` on an invalid header, and
    `format_traceparent`.
  - `tracing_middleware(app)` for WSGI. It keeps a valid incoming
    `traceparent` trace id and generates a new one otherwise. It stores the
    `TraceContext` in the environ under `TRACE_CONTEXT_KEY` and adds a
    `Traceparent` header to the response.

## Examples

Rate limiting:

```python
from mcpgw.memory import RateLimitStore

limiter = RateLimitStore()
if limiter.allow("client-a", rate=1.0, burst=3):
    ...
```

Circuit breaking:

```python
from mcpgw.circuitbreaker import CircuitBreaker

breaker = CircuitBreaker(max_failures=3, timeout=30.0)
allowed, state = breaker.allow()
```

Routing `tools/call` requests by tool name:

```python
from mcpgw.routing import Route, Router

router = Router(
    [Route(match_tools=["fs_*"], upstream="http://localhost:8081")],
    "http://localhost:8080",
)
router.resolve("tools/call", {"name": "fs_read"})   # "http://localhost:8081"
router.resolve("tools/list", None)                  # "http://localhost:8080"
```

Reading and writing SSE:

```python
import io
from mcpgw.sse import read_events, format_event

for event in read_events(io.StringIO("event: message\ndata: hello\n\n")):
    print(event.event, event.data)
    print(format_event(event), end="")
```

Wrapping a WSGI app:

```python
from mcpgw.cors import build_cors_middleware
from mcpgw.telemetry import tracing_middleware

app = tracing_middleware(app)
cors = build_cors_middleware(["http://localhost:3000"])
if cors is not None:
    app = cors.wrap(app)
```

## What this package does not do

These are building blocks only. The package contains:

- no HTTP or stdio proxy that forwards JSON-RPC traffic to upstream servers
- no policy engine or audit log
- no metrics
- no command-line program

The stores keep all their state in process memory, so nothing persists and
nothing is shared between processes. `init_tracer` always installs the no-op
tracer, so spans are never exported, even when an endpoint is configured.

## Running the tests

```
pip install .[test]
pytest
```