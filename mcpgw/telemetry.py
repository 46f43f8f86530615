"""Lightweight tracing: trace context, a no-op tracer and W3C traceparent WSGI middleware."""

from __future__ import annotations

import secrets
import string
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol, runtime_checkable
from urllib.parse import quote

WSGIApp = Callable[..., Iterable[bytes]]

# WSGI environ key under which the middleware stores the request's TraceContext.
TRACE_CONTEXT_KEY = "mcpgw.trace_context"

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class TraceContext:
    """Immutable trace and span identifiers carried along a request."""

    trace_id: str = ""
    span_id: str = ""


@dataclass
class TracerConfig:
    """Tracer settings; an empty endpoint selects the no-op tracer."""

    otlp_endpoint: str = ""
    service_name: str = "mcpgw"
    sample_rate: float = 1.0


@runtime_checkable
class Span(Protocol):
    """A tracing span."""

    def set_attribute(self, key: str, value: str) -> None:
        """Attach an attribute to the span."""
        ...

    def end(self) -> None:
        """Finish the span."""
        ...

    def span_id(self) -> str:
        """Return the span's identifier."""
        ...


@runtime_checkable
class Tracer(Protocol):
    """Creates spans and propagates trace context."""

    def start(self, ctx: TraceContext | None, name: str) -> tuple[TraceContext, Span]:
        """Start a span and return the context that carries it."""
        ...


def with_trace_context(ctx: TraceContext | None, trace_id: str, span_id: str) -> TraceContext:
    """Return a context carrying ``trace_id`` and ``span_id``."""
    return TraceContext(trace_id=trace_id, span_id=span_id)


def trace_id_from_context(ctx: TraceContext | None) -> str:
    """Return the trace id of ``ctx``, or "" when no trace has started."""
    return ctx.trace_id if ctx is not None else ""


def span_id_from_context(ctx: TraceContext | None) -> str:
    """Return the span id of ``ctx``, or "" when no span has started."""
    return ctx.span_id if ctx is not None else ""


def generate_id(n_bytes: int) -> str:
    """Return a random identifier of ``n_bytes`` bytes as lower-case hex."""
    return secrets.token_hex(n_bytes)


class NoopSpan:
    """A span that keeps its attributes locally and exports nothing."""

    def __init__(self, span_id: str) -> None:
        self._span_id = span_id
        self.attributes: dict[str, str] = {}
        self.ended = False

    def set_attribute(self, key: str, value: str) -> None:
        """Keep the attribute on the span."""
        self.attributes[key] = value

    def end(self) -> None:
        """Mark the span as finished."""
        self.ended = True

    def span_id(self) -> str:
        """Return the span's identifier."""
        return self._span_id


class NoopTracer:
    """A tracer that exports nothing but still assigns trace and span ids."""

    def start(self, ctx: TraceContext | None, name: str) -> tuple[TraceContext, NoopSpan]:
        """Start a span, keeping an existing trace id or generating a new one."""
        trace_id = trace_id_from_context(ctx) or generate_id(16)
        span_id = generate_id(8)
        return with_trace_context(ctx, trace_id, span_id), NoopSpan(span_id)


_global_lock = threading.Lock()
_global_tracer: Tracer = NoopTracer()


def set_global_tracer(tracer: Tracer) -> None:
    """Replace the process-wide tracer."""
    global _global_tracer
    with _global_lock:
        _global_tracer = tracer


def global_tracer() -> Tracer:
    """Return the process-wide tracer."""
    with _global_lock:
        return _global_tracer


class _TracerHandle:
    """Tracks whether an installed tracer has been shut down."""

    def __init__(self, config: TracerConfig) -> None:
        self.config = config
        self.closed = False

    def shutdown(self) -> None:
        """Mark the tracer as shut down; repeated calls are harmless."""
        self.closed = True


def init_tracer(config: TracerConfig | None = None) -> Callable[[], None]:
    """Install the tracer described by ``config`` and return its shutdown function.

    Exporting is not available, so the no-op tracer is installed whether or not an
    endpoint is configured.
    """
    config = config or TracerConfig()
    if not config.service_name:
        config.service_name = "mcpgw"
    if config.sample_rate <= 0:
        config.sample_rate = 1.0

    set_global_tracer(NoopTracer())
    return _TracerHandle(config).shutdown


def is_hex(s: str) -> bool:
    """Return whether ``s`` is a whole number of hex-encoded bytes."""
    return len(s) % 2 == 0 and all(c in _HEX_DIGITS for c in s)


def is_all_zero(s: str) -> bool:
    """Return whether every character of ``s`` is "0"."""
    return all(c == "0" for c in s)


def parse_traceparent(header: str) -> tuple[str, str, str]:
    """Parse a W3C traceparent header into ``(trace_id, span_id, flags)``.

    Raises ``ValueError`` for anything other than a valid version-00 header.
    """
    parts = header.split("-")
    if len(parts) != 4:
        raise ValueError(f"traceparent must have 4 parts: {header!r}")
    version, trace_id, span_id, flags = parts
    if version != "00":
        raise ValueError(f"unsupported traceparent version: {version!r}")
    if len(trace_id) != 32 or not is_hex(trace_id):
        raise ValueError(f"invalid trace id: {trace_id!r}")
    if len(span_id) != 16 or not is_hex(span_id):
        raise ValueError(f"invalid span id: {span_id!r}")
    if len(flags) != 2 or not is_hex(flags):
        raise ValueError(f"invalid trace flags: {flags!r}")
    if is_all_zero(trace_id) or is_all_zero(span_id):
        raise ValueError("all-zero trace or span id")
    return trace_id, span_id, flags


def format_traceparent(trace_id: str, span_id: str, flags: str) -> str:
    """Build a version-00 W3C traceparent header."""
    return f"00-{trace_id}-{span_id}-{flags}"


def _request_url(environ: dict[str, Any]) -> str:
    path = quote(environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", ""))
    query = environ.get("QUERY_STRING", "")
    return f"{path}?{query}" if query else path


def tracing_middleware(app: WSGIApp) -> WSGIApp:
    """Wrap a WSGI app so each request runs in a span and carries a traceparent.

    An incoming valid traceparent header supplies the trace id; otherwise a new one is
    generated. The request's TraceContext is stored in the environ under
    ``TRACE_CONTEXT_KEY`` and a traceparent header is added to the response.
    """

    def wrapped(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        ctx: TraceContext | None = None
        incoming = environ.get("HTTP_TRACEPARENT", "")
        if incoming:
            try:
                trace_id, _, _ = parse_traceparent(incoming)
            except ValueError:
                pass
            else:
                ctx = with_trace_context(ctx, trace_id, "")

        ctx, span = global_tracer().start(ctx, "http.request")
        try:
            span.set_attribute("http.method", environ.get("REQUEST_METHOD", ""))
            span.set_attribute("http.url", _request_url(environ))

            trace_id = trace_id_from_context(ctx)
            span_id = span_id_from_context(ctx)
            extra: list[tuple[str, str]] = []
            if trace_id and span_id:
                extra.append(("Traceparent", format_traceparent(trace_id, span_id, "01")))

            def traced_start_response(
                status: str, headers: list[tuple[str, str]], exc_info: Any = None
            ) -> Any:
                kept = [(n, v) for n, v in headers if n.lower() != "traceparent"] if extra else list(headers)
                return start_response(status, kept + extra, exc_info)

            environ[TRACE_CONTEXT_KEY] = ctx
            return app(environ, traced_start_response)
        finally:
            span.end()

    return wrapped