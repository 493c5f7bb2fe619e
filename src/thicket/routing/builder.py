"""Route tree builder with exhaustive conflict detection.

Chains are inserted into a mutable trie, then ``build()`` checks the
whole trie and freezes it into an immutable
:class:`~thicket.routing.tree.RouteTree`::

    builder = TreeBuilder()
    builder.insert(["blog", "[slug]"], HandlerRecord(HandlerKind.PAGE, show_post))
    builder.insert(["(marketing)"], HandlerRecord(HandlerKind.LAYOUT, marketing))
    tree = builder.build()

Problems are collected, never raised on the spot.  ``build()`` raises
one :class:`~thicket.errors.BuildError` listing every conflict, sorted
so the report is the same whatever order the chains arrived in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, TypeAlias

from thicket.errors import BuildError, ConfigurationError, Conflict, ConflictKind, SegmentSyntaxError
from thicket.routing.route import HandlerKind, HandlerRecord, Handlers
from thicket.routing.segments import (
    PARAM_KINDS,
    SegmentDescriptor,
    SegmentKind,
    format_chain,
    format_pattern,
    parse_chain,
    split_path,
)
from thicket.routing.tree import RouteNode, RouteTree
from thicket.sources import ListingEntry, RouteSource

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("thicket.build")

_CONFLICT_ORDER = {kind: i for i, kind in enumerate(ConflictKind)}

# (kind, literal) per URL-visible segment
_Shape: TypeAlias = tuple[tuple[SegmentKind, str], ...]


class _BuildNode:
    """A node in the build trie. Mutable during building only."""

    __slots__ = (
        "depth",
        "descriptors",
        "groups",
        "handlers",
        "key",
        "name_chains",
        "params",
        "pattern",
        "segment",
        "statics",
    )

    def __init__(self, descriptors: tuple[SegmentDescriptor, ...], depth: int) -> None:
        self.descriptors = descriptors
        self.segment = descriptors[-1] if descriptors else None
        self.depth = depth
        self.key = format_chain(descriptors)
        self.pattern = format_pattern(descriptors)
        # Static children: "users" -> node
        self.statics: dict[str, _BuildNode] = {}
        # Parameter children by kind, then name.  More than one name per
        # kind is an ambiguity; each name keeps its own subtree so one
        # mistake is reported once.
        self.params: dict[SegmentKind, dict[str, _BuildNode]] = {}
        # Group children: label -> node
        self.groups: dict[str, _BuildNode] = {}
        # Chains that introduced each (kind, name) parameter child
        self.name_chains: dict[tuple[SegmentKind, str], list[str]] = {}
        # Handler records with the chain that attached each one
        self.handlers: dict[HandlerKind, list[tuple[HandlerRecord, str]]] = {}

    def child(self, desc: SegmentDescriptor) -> _BuildNode:
        if desc.kind is SegmentKind.STATIC:
            table = self.statics
            slot = desc.literal
        elif desc.kind is SegmentKind.GROUP:
            table = self.groups
            slot = desc.name
        else:
            table = self.params.setdefault(desc.kind, {})
            slot = desc.name

        node = table.get(slot)
        if node is None:
            depth = self.depth if desc.is_group else self.depth + 1
            node = _BuildNode((*self.descriptors, desc), depth)
            table[slot] = node
        return node

    def walk(self) -> Iterator[_BuildNode]:
        yield self
        for literal in sorted(self.statics):
            yield from self.statics[literal].walk()
        for kind in (SegmentKind.DYNAMIC, SegmentKind.CATCH_ALL, SegmentKind.OPTIONAL_CATCH_ALL):
            by_name = self.params.get(kind, {})
            for name in sorted(by_name):
                yield from by_name[name].walk()
        for label in sorted(self.groups):
            yield from self.groups[label].walk()


def _chain_label(raw_segments: Sequence[str]) -> str:
    return "/" + "/".join(raw_segments)


class TreeBuilder:
    """Fold segment-chain insertions into one route tree.

    Not re-entrant: ``insert()`` or ``build()`` during a ``build()``
    raises :class:`~thicket.errors.ConfigurationError`, as does
    inserting after the tree has been built.
    """

    __slots__ = ("_building", "_conflicts", "_inserted", "_root", "_tree")

    def __init__(self) -> None:
        self._root = _BuildNode((), 0)
        self._conflicts: list[Conflict] = []
        self._building = False
        self._tree: RouteTree | None = None
        self._inserted = 0

    def insert(self, chain: Sequence[str] | str, record: HandlerRecord) -> None:
        """Insert one chain and attach *record* at its terminal node.

        *chain* is a sequence of raw segment names, or a string such as
        ``"blog/[slug]"``.  An empty chain attaches to the root.
        """
        if self._building:
            msg = "TreeBuilder is not re-entrant: insert() called during build()."
            raise ConfigurationError(msg)
        if self._tree is not None:
            msg = "Cannot insert chains after build()."
            raise ConfigurationError(msg)

        raw_segments = split_path(chain) if isinstance(chain, str) else tuple(chain)
        label = _chain_label(raw_segments)
        self._inserted += 1

        try:
            descriptors = parse_chain(raw_segments)
        except SegmentSyntaxError as exc:
            self._conflicts.append(
                Conflict(
                    kind=ConflictKind.SEGMENT_SYNTAX,
                    location=label,
                    message=str(exc),
                    chains=(label,),
                )
            )
            return

        node = self._root
        for desc in descriptors:
            if desc.kind in PARAM_KINDS:
                node.name_chains.setdefault((desc.kind, desc.name), []).append(label)
            node = node.child(desc)

        node.handlers.setdefault(record.kind, []).append((record, label))

    def extend(self, listing: RouteSource | Iterable[ListingEntry]) -> None:
        """Insert every entry of a listing or route source."""
        entries = listing.listing() if isinstance(listing, RouteSource) else listing
        for chain, record in entries:
            self.insert(chain, record)

    def build(self) -> RouteTree:
        """Check the whole trie and freeze it.

        Raises:
            BuildError: If any conflict was found, listing all of them.
        """
        if self._tree is not None:
            return self._tree
        if self._building:
            msg = "TreeBuilder is not re-entrant: build() called during build()."
            raise ConfigurationError(msg)

        self._building = True
        try:
            conflicts = [*self._conflicts, *self._check()]
            if conflicts:
                conflicts.sort(key=lambda c: (_CONFLICT_ORDER[c.kind], c.location, c.chains, c.message))
                for conflict in conflicts:
                    logger.warning("Route conflict: %s", conflict)
                raise BuildError(tuple(conflicts))
            tree = RouteTree(root=_freeze(self._root))
        finally:
            self._building = False

        self._tree = tree
        logger.info(
            "Built route tree from %d chains: %d nodes, %d routes",
            self._inserted,
            len(tree),
            len(tree.routes()),
        )
        return tree

    # -- Whole-trie checks --

    def _check(self) -> list[Conflict]:
        conflicts: list[Conflict] = []
        shapes: dict[_Shape, list[_BuildNode]] = {}
        # URL position -> build nodes sharing it; groups are transparent,
        # so (a)/[id] and (b)/[slug] compete for the same position
        positions: dict[_Shape, list[_BuildNode]] = {}

        for node in self._root.walk():
            conflicts.extend(_check_handlers(node))
            if node.params:
                positions.setdefault(_shape(node), []).append(node)
            if HandlerKind.PAGE in node.handlers or HandlerKind.API in node.handlers:
                shapes.setdefault(_shape(node), []).append(node)

        for nodes in positions.values():
            conflicts.extend(_check_position(nodes))

        for nodes in shapes.values():
            if len(nodes) < 2:
                continue
            if len({_placement(n) for n in nodes}) < 2:
                # Same groups, different parameter names: already an ambiguity
                continue
            keys = tuple(sorted(n.key for n in nodes))
            conflicts.append(
                Conflict(
                    kind=ConflictKind.DUPLICATE_PATH,
                    location=nodes[0].pattern,
                    message=f"{len(nodes)} routes in different groups resolve to the same path",
                    chains=keys,
                )
            )
        return conflicts


def _check_position(nodes: list[_BuildNode]) -> Iterator[Conflict]:
    """Check the parameter children of every node sharing one URL position."""
    location = min(node.key for node in nodes)
    chains: dict[SegmentKind, dict[str, list[str]]] = {}
    raws: dict[tuple[SegmentKind, str], str] = {}
    for node in nodes:
        for kind, by_name in node.params.items():
            for name, child in by_name.items():
                chains.setdefault(kind, {}).setdefault(name, []).extend(node.name_chains.get((kind, name), ()))
                raws.setdefault((kind, name), child.descriptors[-1].raw)

    for kind, by_name in chains.items():
        if len(by_name) < 2:
            continue
        names = sorted(by_name)
        shown = ", ".join(raws[kind, name] for name in names)
        yield Conflict(
            kind=ConflictKind.AMBIGUOUS_NAME,
            location=location,
            message=f"{kind.value} segments at the same position use different names: {shown}",
            chains=tuple(sorted(c for name in names for c in by_name[name])),
        )

    if SegmentKind.CATCH_ALL in chains and SegmentKind.OPTIONAL_CATCH_ALL in chains:
        involved = sorted(
            c
            for kind in (SegmentKind.CATCH_ALL, SegmentKind.OPTIONAL_CATCH_ALL)
            for labels in chains[kind].values()
            for c in labels
        )
        yield Conflict(
            kind=ConflictKind.MULTIPLE_RESTRICTED_CHILDREN,
            location=location,
            message="catch-all and optional catch-all cannot be siblings",
            chains=tuple(involved),
        )


def _check_handlers(node: _BuildNode) -> Iterator[Conflict]:
    for kind, entries in node.handlers.items():
        if len(entries) < 2:
            continue
        sources = sorted(record.source or label for record, label in entries)
        yield Conflict(
            kind=ConflictKind.DUPLICATE_HANDLER,
            location=node.key,
            message=f"{len(entries)} {kind.value} handlers defined: " + ", ".join(sources),
            chains=tuple(sorted(label for _, label in entries)),
        )
    if HandlerKind.PAGE in node.handlers and HandlerKind.API in node.handlers:
        labels = [label for k in (HandlerKind.PAGE, HandlerKind.API) for _, label in node.handlers[k]]
        yield Conflict(
            kind=ConflictKind.PAGE_API_COLLISION,
            location=node.key,
            message="a page and an API handler cannot share a route",
            chains=tuple(sorted(labels)),
        )


def _shape(node: _BuildNode) -> _Shape:
    """URL shape: what a request sees, parameter names and groups dropped."""
    return tuple((d.kind, d.literal) for d in node.descriptors if not d.is_group)


def _placement(node: _BuildNode) -> _Shape:
    """Tree shape: like the URL shape but keeping where each group sits."""
    return tuple((d.kind, d.name if d.is_group else d.literal) for d in node.descriptors)


def _freeze(node: _BuildNode) -> RouteNode:
    """Convert a checked build node into an immutable RouteNode."""

    def only(kind: SegmentKind) -> RouteNode | None:
        by_name = node.params.get(kind)
        if not by_name:
            return None
        (child,) = by_name.values()
        return _freeze(child)

    handlers = Handlers(**{kind.value: entries[0][0] for kind, entries in node.handlers.items()})
    return RouteNode(
        segment=node.segment,
        depth=node.depth,
        key=node.key,
        pattern=node.pattern,
        static_children=MappingProxyType({lit: _freeze(child) for lit, child in sorted(node.statics.items())}),
        dynamic=only(SegmentKind.DYNAMIC),
        catch_all=only(SegmentKind.CATCH_ALL),
        optional_catch_all=only(SegmentKind.OPTIONAL_CATCH_ALL),
        groups=tuple(_freeze(node.groups[label]) for label in sorted(node.groups)),
        handlers=handlers,
        descriptors=node.descriptors,
    )


def build_tree(listing: RouteSource | Iterable[ListingEntry]) -> RouteTree:
    """Build a route tree from a listing in one call.

    Raises:
        BuildError: If the listing contains any conflict.
    """
    builder = TreeBuilder()
    builder.extend(listing)
    return builder.build()
