"""Routing of JSON-RPC requests to upstreams by tool name."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any, Iterable, Mapping, Union

Params = Union[str, bytes, Mapping[str, Any], None]


def glob_match(pattern: str, name: str) -> bool:
    """Return whether ``name`` matches the shell-style glob ``pattern`` (case-sensitive)."""
    return fnmatchcase(name, pattern)


def extract_tool_name(params: Params) -> str:
    """Return the ``name`` field of tools/call params, or "" when absent or unparsable."""
    if params is None:
        return ""
    if isinstance(params, (str, bytes)):
        if not params:
            return ""
        try:
            params = json.loads(params)
        except ValueError:
            return ""
    if not isinstance(params, Mapping):
        return ""
    name = params.get("name")
    return name if isinstance(name, str) else ""


@dataclass
class Route:
    """Sends tools whose names match any of ``match_tools`` to ``upstream``."""

    match_tools: list[str] = field(default_factory=list)
    upstream: str = ""


class Router:
    """Chooses the upstream for a request based on the called tool's name."""

    def __init__(self, routes: Iterable[Route] | None, default_upstream: str) -> None:
        self._routes = list(routes or [])
        self._default = default_upstream.rstrip("/")

    def resolve(self, method: str, params: Params) -> str:
        """Return the upstream for a request; the first matching route wins."""
        if not self._routes or method != "tools/call":
            return self._default
        tool_name = extract_tool_name(params)
        if not tool_name:
            return self._default
        for route in self._routes:
            if any(glob_match(pattern, tool_name) for pattern in route.match_tools):
                return route.upstream.rstrip("/")
        return self._default

    def upstreams(self) -> list[str]:
        """Return every distinct upstream, the default first, without trailing slashes."""
        candidates = [self._default, *(route.upstream for route in self._routes)]
        return list(dict.fromkeys(u.rstrip("/") for u in candidates))

    def default_upstream(self) -> str:
        """Return the default upstream URL."""
        return self._default

    def has_routes(self) -> bool:
        """Return whether any routing rules are configured."""
        return bool(self._routes)