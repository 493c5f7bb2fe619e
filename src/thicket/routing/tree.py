"""Immutable route tree.

Nodes are produced by :class:`~thicket.routing.builder.TreeBuilder` and
never change afterwards, so any number of threads or tasks can match
against one tree without synchronization.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from thicket.routing.route import Handlers, NotFound, RouteMatch
from thicket.routing.segments import SegmentDescriptor, SegmentKind

if TYPE_CHECKING:
    from thicket.routing.route import HandlerRecord


@dataclass(frozen=True, slots=True, eq=False)
class RouteNode:
    """One node of a compiled route tree.

    Attributes:
        segment: Descriptor that leads here (``None`` for the root).
        depth: URL depth.  Group nodes share their parent's depth.
        key: Tree path with groups, e.g. ``"/(shop)/cart"``.
        pattern: URL pattern without groups, e.g. ``"/cart"``.
        static_children: Static children keyed by literal text.
        dynamic: The single ``[name]`` child, if any.
        catch_all: The single ``[...name]`` child, if any.
        optional_catch_all: The single ``[[...name]]`` child, if any.
        groups: ``(label)`` children, sorted by label.
        handlers: Handler slots attached to this node.
        descriptors: Every descriptor from the root to here, groups included.
    """

    segment: SegmentDescriptor | None
    depth: int
    key: str
    pattern: str
    static_children: Mapping[str, RouteNode] = field(default_factory=lambda: MappingProxyType({}))
    dynamic: RouteNode | None = None
    catch_all: RouteNode | None = None
    optional_catch_all: RouteNode | None = None
    groups: tuple[RouteNode, ...] = ()
    handlers: Handlers = field(default_factory=Handlers)
    descriptors: tuple[SegmentDescriptor, ...] = ()

    @property
    def kind(self) -> SegmentKind | None:
        return self.segment.kind if self.segment is not None else None

    @property
    def param_name(self) -> str | None:
        """Parameter bound by this node, or ``None`` for static/group/root."""
        if self.segment is not None and self.segment.is_param:
            return self.segment.name
        return None

    @property
    def is_terminal(self) -> bool:
        return self.handlers.is_terminal

    @property
    def param_segments(self) -> tuple[SegmentDescriptor, ...]:
        """Parameter-binding ancestors (this node included), root-first."""
        return tuple(d for d in self.descriptors if d.is_param)

    @property
    def children(self) -> Mapping[tuple[SegmentKind, str], RouteNode]:
        """All children keyed by ``(kind, discriminator)``.

        The discriminator is the literal for static children, the
        parameter name for dynamic kinds, and the label for groups.
        """
        result: dict[tuple[SegmentKind, str], RouteNode] = {}
        for literal, child in self.static_children.items():
            result[SegmentKind.STATIC, literal] = child
        for child in (self.dynamic, self.catch_all, self.optional_catch_all, *self.groups):
            if child is not None and child.segment is not None:
                result[child.segment.kind, child.segment.name] = child
        return MappingProxyType(result)

    def iter_children(self) -> Iterator[RouteNode]:
        """Yield children in a stable order: static (sorted), dynamic kinds, groups."""
        for literal in sorted(self.static_children):
            yield self.static_children[literal]
        for child in (self.dynamic, self.catch_all, self.optional_catch_all):
            if child is not None:
                yield child
        yield from self.groups

    def __repr__(self) -> str:
        return f"RouteNode({self.key!r})"


@dataclass(frozen=True, slots=True)
class RouteTree:
    """A compiled, immutable route tree.

    Attributes:
        root: The root node (URL ``/``).
        generation: Publication counter set by
            :class:`~thicket.table.RouteTable`; ``0`` for trees built
            directly.
    """

    root: RouteNode
    generation: int = 0

    def nodes(self) -> Iterator[RouteNode]:
        """Yield every node, pre-order, in stable child order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.iter_children())))

    def routes(self) -> list[RouteNode]:
        """Return every node that carries a page or API handler."""
        return [node for node in self.nodes() if node.is_terminal]

    def find(self, selector: str) -> RouteNode | None:
        """Find a node by tree key (``"/(shop)/cart"``) or URL pattern.

        Keys are unique.  A pattern is only accepted when exactly one
        terminal node has it; otherwise ``None`` is returned.
        """
        selector = "/" + selector.strip("/")
        by_pattern: list[RouteNode] = []
        for node in self.nodes():
            if node.key == selector:
                return node
            if node.pattern == selector and node.is_terminal:
                by_pattern.append(node)
        if len(by_pattern) == 1:
            return by_pattern[0]
        return None

    def match(self, path: str | Sequence[str]) -> RouteMatch | NotFound:
        """Match *path* against this tree.  See :func:`~thicket.routing.matcher.match_path`."""
        from thicket.routing.matcher import match_path

        return match_path(self, path)

    def layouts(self, path: str | Sequence[str]) -> tuple[HandlerRecord, ...]:
        """Shortcut: layout chain for *path*, or ``()`` when nothing matches."""
        result = self.match(path)
        if isinstance(result, RouteMatch):
            return result.layout_chain
        return ()

    def __len__(self) -> int:
        return sum(1 for _ in self.nodes())
