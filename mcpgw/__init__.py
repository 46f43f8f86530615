"""Gateway components for MCP servers: in-memory state stores, circuit breaking, SSE, CORS and tracing WSGI middleware, tool routing and risk scoring."""

__version__ = "0.1.0"

__all__ = [
    "state",
    "memory",
    "circuitbreaker",
    "sse",
    "cors",
    "routing",
    "servereval",
    "telemetry",
]