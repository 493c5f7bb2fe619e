"""Handler records, match results, and static path results.

All frozen dataclasses.  ``RouteMatch`` and ``NotFound`` are created per
request; ``StaticPathSet`` per enumeration call.  Both are owned by the
caller.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any

from thicket.errors import MethodNotAllowed, ThicketError

if TYPE_CHECKING:
    from thicket.routing.tree import RouteNode

# Parameter values: plain segments for dynamic, tuples for catch-alls
ParamValue = str | tuple[str, ...]

# Methods a page handler answers
_PAGE_METHODS = frozenset({"GET", "HEAD"})


class HandlerKind(Enum):
    """Slot a handler record occupies on a route node.

    Values match the attribute names on :class:`Handlers`.
    """

    PAGE = "page"
    API = "api"
    LAYOUT = "layout"
    TEMPLATE = "template"
    ERROR = "error"
    LOADING = "loading"
    NOT_FOUND = "not_found"


# Kinds that make a node a match target
TERMINAL_KINDS = frozenset({HandlerKind.PAGE, HandlerKind.API})


@dataclass(frozen=True, slots=True)
class HandlerRecord:
    """A handler attached to a route node.

    Attributes:
        kind: Which slot the record fills.
        target: The handler itself. A callable, a loaded module, or a
            file path when modules are not loaded.
        source: Diagnostic label, usually the defining file.
        methods: HTTP methods served (API records only).
    """

    kind: HandlerKind
    target: Any
    source: str = ""
    methods: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class Handlers:
    """Struct of optional handler slots, one per :class:`HandlerKind`."""

    page: HandlerRecord | None = None
    api: HandlerRecord | None = None
    layout: HandlerRecord | None = None
    template: HandlerRecord | None = None
    error: HandlerRecord | None = None
    loading: HandlerRecord | None = None
    not_found: HandlerRecord | None = None

    def get(self, kind: HandlerKind) -> HandlerRecord | None:
        return getattr(self, kind.value)

    @property
    def is_terminal(self) -> bool:
        """True when a request can end here (page or API handler present)."""
        return self.page is not None or self.api is not None

    def __iter__(self) -> Iterator[HandlerRecord]:
        for f in fields(self):
            record = getattr(self, f.name)
            if record is not None:
                yield record

    def __len__(self) -> int:
        return sum(1 for _ in self)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful match.

    Attributes:
        node: The terminal node reached.
        params: Parameter name to value, in encounter order.  Catch-all
            values are tuples of segments; everything else is a string.
        trail: Every node walked from the root to ``node``, groups
            included.
        path: The request segments that were matched.
        layout_chain: Layout handlers along ``trail``, root-first.
    """

    node: RouteNode
    params: dict[str, ParamValue]
    trail: tuple[RouteNode, ...]
    path: tuple[str, ...]
    layout_chain: tuple[HandlerRecord, ...] = ()

    def __bool__(self) -> bool:
        return True

    @property
    def url(self) -> str:
        return "/" + "/".join(self.path)

    @property
    def pattern(self) -> str:
        return self.node.pattern

    @property
    def handler(self) -> HandlerRecord:
        """The terminal record: the page if present, else the API handler.

        Raises:
            ThicketError: If the node carries neither.
        """
        record = self.node.handlers.page or self.node.handlers.api
        if record is None:
            msg = f"Route node {self.node.key!r} has no page or API handler"
            raise ThicketError(msg)
        return record

    @property
    def allowed_methods(self) -> frozenset[str]:
        handlers = self.node.handlers
        if handlers.page is not None:
            return _PAGE_METHODS
        if handlers.api is not None:
            return handlers.api.methods
        return frozenset()

    def handler_for(self, method: str) -> HandlerRecord:
        """Pick the record that serves *method*.

        Raises:
            MethodNotAllowed: If the node does not serve *method*.
        """
        method = method.upper()
        allowed = self.allowed_methods
        if method not in allowed:
            raise MethodNotAllowed(method, allowed)
        return self.handler


@dataclass(frozen=True, slots=True)
class NotFound:
    """Result of a request path that matches no route.

    Falsy, so callers can write ``if not result:``.  ``trail`` is the
    deepest chain of nodes the matcher reached before giving up, used to
    find the nearest not-found boundary.
    """

    path: tuple[str, ...]
    trail: tuple[RouteNode, ...] = ()

    def __bool__(self) -> bool:
        return False

    @property
    def url(self) -> str:
        return "/" + "/".join(self.path)


@dataclass(frozen=True, slots=True)
class StaticPath:
    """One concrete path produced by enumeration."""

    path: str
    params: dict[str, ParamValue]


@dataclass(frozen=True, slots=True)
class EnumerationDiagnostic:
    """Something that reduced an enumeration's output.

    Attributes:
        pattern: URL pattern of the node being enumerated.
        param: Parameter the problem concerns, if any.
        message: Human-readable description.
    """

    pattern: str
    param: str | None
    message: str


@dataclass(frozen=True, slots=True)
class StaticPathSet:
    """Ordered, path-deduplicated output of an enumeration."""

    paths: tuple[StaticPath, ...] = ()
    diagnostics: tuple[EnumerationDiagnostic, ...] = field(default=())

    def __iter__(self) -> Iterator[StaticPath]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    @property
    def urls(self) -> tuple[str, ...]:
        return tuple(p.path for p in self.paths)
