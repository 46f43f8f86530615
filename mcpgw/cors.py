"""CORS handling as WSGI middleware."""

from __future__ import annotations

from typing import Any, Callable, Iterable

WSGIApp = Callable[..., Iterable[bytes]]

_ALLOW_METHODS = "GET, POST, DELETE, OPTIONS"
_ALLOW_HEADERS = "Content-Type, Authorization, X-API-Key, Mcp-Session-Id, X-Request-Id"
_EXPOSE_HEADERS = "Mcp-Session-Id, X-Request-Id"
_MAX_AGE = "86400"


class CORSMiddleware:
    """Answers CORS preflights and adds CORS headers for allowed origins."""

    def __init__(self, origins: Iterable[str]) -> None:
        self._origins = frozenset(origins)
        if not self._origins:
            raise ValueError("at least one allowed origin is required")
        self._allow_all = "*" in self._origins

    def is_allowed(self, origin: str) -> bool:
        """Return whether ``origin`` may make cross-origin requests."""
        return self._allow_all or origin in self._origins

    def wrap(self, app: WSGIApp) -> WSGIApp:
        """Return a WSGI application that applies CORS handling around ``app``."""

        def wrapped(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
            origin = environ.get("HTTP_ORIGIN", "")
            if not origin:
                return app(environ, start_response)

            cors_headers = [("Vary", "Origin")]
            if self.is_allowed(origin):
                cors_headers += [
                    ("Access-Control-Allow-Origin", origin),
                    ("Access-Control-Allow-Methods", _ALLOW_METHODS),
                    ("Access-Control-Allow-Headers", _ALLOW_HEADERS),
                    ("Access-Control-Expose-Headers", _EXPOSE_HEADERS),
                    ("Access-Control-Max-Age", _MAX_AGE),
                ]
                if environ.get("REQUEST_METHOD", "").upper() == "OPTIONS":
                    start_response("204 No Content", cors_headers)
                    return []

            def cors_start_response(status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Any:
                app_names = {name.lower() for name, _ in headers}
                merged = [
                    (name, value)
                    for name, value in cors_headers
                    if name.lower() == "vary" or name.lower() not in app_names
                ]
                return start_response(status, merged + list(headers), exc_info)

            return app(environ, cors_start_response)

        return wrapped


def build_cors_middleware(origins: Iterable[str] | None) -> CORSMiddleware | None:
    """Return a middleware for ``origins``, or ``None`` when no origins are given (CORS disabled)."""
    origins = list(origins or [])
    if not origins:
        return None
    return CORSMiddleware(origins)