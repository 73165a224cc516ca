"""URL template routing.

A RouteTable is built once at startup and read-only afterwards, so it can be
shared by every request thread without locking.

Template syntax:
    person/{id}/familymembers
    profile/list?profileID={profileID}&start={start}

Literal segments match byte-for-byte, ``{name}`` segments capture whatever
the request carries at that position. The query part of a template is kept
for documentation (see the ``info`` endpoint) and never used for matching.
Resolution scans in registration order and the first structural match wins.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

_CAPTURE = re.compile(r"^\{(\w+)\}$")
_QUERY_KEY = re.compile(r"([^&=]+)=")


@dataclass(frozen=True)
class Segment:
    value: str
    capture: bool = False


@dataclass(frozen=True)
class RouteEntry:
    method: str
    template: str
    segments: tuple[Segment, ...]
    handler: Callable
    query_keys: tuple[str, ...] = ()
    anonymous: bool = False

    def match(self, parts: list[str]) -> Optional[dict[str, str]]:
        """Return captured values if ``parts`` fits this template, else None."""
        if len(parts) != len(self.segments):
            return None
        captures: dict[str, str] = {}
        for segment, part in zip(self.segments, parts):
            if segment.capture:
                captures[segment.value] = part
            elif segment.value != part:
                return None
        return captures


@dataclass(frozen=True)
class RouteMatch:
    entry: RouteEntry
    captures: dict[str, str] = field(default_factory=dict)


def split_path(path: str) -> list[str]:
    """Split a request path or template path into segments."""
    stripped = path.strip("/")
    if not stripped:
        return []
    return stripped.split("/")


def parse_template(template: str) -> tuple[tuple[Segment, ...], tuple[str, ...]]:
    """Parse a route template into path segments and descriptive query keys."""
    path, _, query = template.partition("?")
    segments = []
    for part in split_path(path):
        capture = _CAPTURE.match(part)
        if capture:
            segments.append(Segment(capture.group(1), capture=True))
        else:
            segments.append(Segment(part))
    return tuple(segments), tuple(_QUERY_KEY.findall(query))


def join_prefix(prefix: str, template: str) -> str:
    prefix = prefix.strip("/")
    template = template.lstrip("/")
    return f"{prefix}/{template}" if prefix else template


class RouteGroup:
    """Declarative collection of handlers, registered into a table later.

    Usage:
        routes = RouteGroup()

        @routes.get("person/{id}?fields={fields}")
        def get_person(ctx: RequestContext, id: int, fields: list[str] = None):
            ...
    """

    def __init__(self):
        self._routes: list[tuple[str, str, Callable, bool]] = []

    def route(self, method: str, template: str, anonymous: bool = False):
        def decorator(handler: Callable) -> Callable:
            self._routes.append((method.upper(), template, handler, anonymous))
            return handler
        return decorator

    def get(self, template: str, anonymous: bool = False):
        return self.route("GET", template, anonymous)

    def post(self, template: str, anonymous: bool = False):
        return self.route("POST", template, anonymous)

    def __iter__(self) -> Iterator[tuple[str, str, Callable, bool]]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)


class RouteTable:
    """Ordered registry of (method, template) -> handler."""

    def __init__(self):
        self._entries: list[RouteEntry] = []

    def register(self, method: str, template: str, handler: Callable, anonymous: bool = False) -> RouteEntry:
        """Add a route. Earlier registrations take priority on ambiguity."""
        segments, query_keys = parse_template(template)
        entry = RouteEntry(
            method=method.upper(),
            template=template,
            segments=segments,
            handler=handler,
            query_keys=query_keys,
            anonymous=anonymous,
        )
        self._entries.append(entry)
        return entry

    def include(self, group: RouteGroup, prefix: str = "") -> None:
        """Register every route of ``group`` under ``prefix``, keeping order."""
        for method, template, handler, anonymous in group:
            self.register(method, join_prefix(prefix, template), handler, anonymous)

    def resolve(self, method: str, path: str) -> Optional[RouteMatch]:
        """Find the first registered route matching ``method`` and ``path``."""
        method = method.upper()
        parts = split_path(path)
        for entry in self._entries:
            if entry.method != method:
                continue
            captures = entry.match(parts)
            if captures is not None:
                return RouteMatch(entry, captures)
        return None

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
