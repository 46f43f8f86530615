"""Reading and writing Server-Sent Events streams."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Union

# Longest line accepted from a stream, matching the scanner buffer limit.
_MAX_LINE = 1024 * 1024

Line = Union[str, bytes]


@dataclass
class SSEEvent:
    """One Server-Sent Event."""

    id: str = ""
    event: str = ""
    data: str = ""


def parse_field(line: str) -> tuple[str, str]:
    """Split an SSE line into field name and value.

    "field: value" and "field:value" give ("field", "value"); "field" gives ("field", "").
    Only a single leading space of the value is removed.
    """
    field, sep, value = line.partition(":")
    if not sep:
        return line, ""
    return field, value.removeprefix(" ")


def _normalise(line: Line) -> str:
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    return line.removesuffix("\n").removesuffix("\r")


def read_events(stream: Iterable[Line]) -> Iterator[SSEEvent]:
    """Yield events from a stream of lines (a text or binary file, or any iterable of lines).

    Blank lines separate events, lines starting with ":" are comments, and an event left
    unterminated at the end of the stream is still yielded. A line longer than 1 MiB ends
    the stream with ``ValueError`` after any pending event has been yielded.
    """
    event_id = ""
    event_name = ""
    data_lines: list[str] = []
    has_fields = False
    error: ValueError | None = None

    for raw in stream:
        line = _normalise(raw)
        if len(line) > _MAX_LINE:
            error = ValueError(f"SSE line exceeds {_MAX_LINE} bytes")
            break

        if line == "":
            if has_fields:
                yield SSEEvent(id=event_id, event=event_name, data="\n".join(data_lines))
                event_id, event_name, data_lines, has_fields = "", "", [], False
            continue

        if line.startswith(":"):
            continue

        field, value = parse_field(line)
        if field == "data":
            data_lines.append(value)
            has_fields = True
        elif field == "event":
            event_name = value
            has_fields = True
        elif field == "id":
            event_id = value
            has_fields = True

    if has_fields:
        yield SSEEvent(id=event_id, event=event_name, data="\n".join(data_lines))
    if error is not None:
        raise error


def format_event(event: SSEEvent) -> str:
    """Render an event in SSE wire format, terminated by a blank line."""
    parts: list[str] = []
    if event.event:
        parts.append(f"event: {event.event}\n")
    if event.id:
        parts.append(f"id: {event.id}\n")
    parts.extend(f"data: {line}\n" for line in event.data.split("\n"))
    parts.append("\n")
    return "".join(parts)