"""Risk scoring of MCP server tools and an in-memory store of evaluated servers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from mcpgw.routing import glob_match

RISK_HIGH = "high"
RISK_MEDIUM = "medium"
RISK_LOW = "low"

_HIGH_RISK_PATTERNS = ("exec_*", "run_*", "send_*", "delete_*", "write_*", "sql_*")
_MEDIUM_RISK_PATTERNS = ("read_file", "get_env", "list_env", "list_*")

_LEVEL_SCORE = {RISK_HIGH: 0.9, RISK_MEDIUM: 0.5}
_LEVEL_ORDER = {RISK_HIGH: 3, RISK_MEDIUM: 2}


@dataclass
class ToolInfo:
    """A tool exposed by a server, with its risk level if already known."""

    name: str
    risk_level: str = ""


@dataclass
class ServerInfo:
    """An evaluated MCP server; status is "approved", "denied" or "pending"."""

    upstream: str
    server_name: str = ""
    tools: list[ToolInfo] = field(default_factory=list)
    risk_level: str = ""
    risk_score: float = 0.0
    status: str = ""
    discovered_at: datetime | None = None
    evaluated_at: datetime | None = None


def score_tool(name: str) -> str:
    """Return the risk level implied by a tool's name."""
    if any(glob_match(p, name) for p in _HIGH_RISK_PATTERNS):
        return RISK_HIGH
    if any(glob_match(p, name) for p in _MEDIUM_RISK_PATTERNS):
        return RISK_MEDIUM
    return RISK_LOW


def score_tools(tools: Iterable[ToolInfo] | None) -> tuple[str, float]:
    """Return ``(level, score)``: the highest tool risk level and the mean tool score."""
    levels = [t.risk_level or score_tool(t.name) for t in tools or []]
    if not levels:
        return RISK_LOW, 0.0
    max_level = max(levels, key=lambda lvl: _LEVEL_ORDER.get(lvl, 1))
    if _LEVEL_ORDER.get(max_level, 1) == 1:
        max_level = RISK_LOW
    total = sum(_LEVEL_SCORE.get(lvl, 0.2) for lvl in levels)
    return max_level, total / len(levels)


class ServerStore:
    """Thread-safe in-memory store of evaluated servers, keyed by upstream URL."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._servers: dict[str, ServerInfo] = {}

    def get(self, upstream: str) -> ServerInfo | None:
        """Return the server stored for ``upstream``, or ``None``."""
        with self._lock:
            return self._servers.get(upstream)

    def set(self, info: ServerInfo) -> None:
        """Store ``info`` under its upstream URL, replacing any earlier entry."""
        with self._lock:
            self._servers[info.upstream] = info

    def list(self) -> list[ServerInfo]:
        """Return a snapshot of all stored servers."""
        with self._lock:
            return list(self._servers.values())

    def update_status(self, upstream: str, status: str) -> bool:
        """Set the status of a stored server; return ``False`` if it is unknown."""
        with self._lock:
            info = self._servers.get(upstream)
            if info is None:
                return False
            info.status = status
            return True