"""Request matching against a compiled route tree.

Depth-first walk with a fixed precedence at every node:

1. Static child whose literal equals the segment (case-sensitive)
2. Dynamic ``[name]`` child, binding one segment
3. Catch-all ``[...name]`` child, binding every remaining segment
4. Optional catch-all ``[[...name]]`` child, binding the rest (maybe none)

Groups are transparent: a node's ``(group)`` children are tried against
the *same* segment, right after the node itself.  When a static or
dynamic branch dead-ends further down, the walk backs up and tries the
lower-precedence siblings, so catch-alls are the last resort.  A
catch-all is greedy and final: it is never retried with fewer segments.

The walk never mutates the tree and takes no locks.
"""

from __future__ import annotations

from collections.abc import Sequence

from thicket.routing.layouts import collect
from thicket.routing.route import HandlerKind, NotFound, ParamValue, RouteMatch
from thicket.routing.segments import split_path
from thicket.routing.tree import RouteNode, RouteTree

Trail = tuple[RouteNode, ...]
Params = dict[str, ParamValue]
_Found = tuple[RouteNode, Trail, Params]


def match_path(tree: RouteTree, path: str | Sequence[str]) -> RouteMatch | NotFound:
    """Match a request path against *tree*.

    Args:
        tree: The route tree snapshot to match against.
        path: A path string (``"/blog/my-post"``) or a sequence of
            already-decoded segments.

    Returns:
        A :class:`RouteMatch` on success, otherwise a falsy
        :class:`NotFound` value.  Never raises for an unmatched path.
    """
    segments = split_path(path) if isinstance(path, str) else tuple(path)
    walker = _Walker(segments)
    found = walker.walk(tree.root, 0, (tree.root,), {})

    if found is None:
        return NotFound(path=segments, trail=walker.deepest)

    node, trail, params = found
    return RouteMatch(
        node=node,
        params=params,
        trail=trail,
        path=segments,
        layout_chain=collect(trail, HandlerKind.LAYOUT),
    )


def _closure(node: RouteNode, trail: Trail) -> list[tuple[RouteNode, Trail]]:
    """The node followed by its group descendants, depth-first, label order."""
    result = [(node, trail)]
    for group in node.groups:
        result.extend(_closure(group, (*trail, group)))
    return result


class _Walker:
    """State for one match: the request segments and the deepest trail seen."""

    __slots__ = ("_deepest_index", "deepest", "segments")

    def __init__(self, segments: tuple[str, ...]) -> None:
        self.segments = segments
        self.deepest: Trail = ()
        self._deepest_index = -1

    def _note(self, trail: Trail, index: int) -> None:
        if index > self._deepest_index:
            self._deepest_index = index
            self.deepest = trail

    def walk(self, node: RouteNode, index: int, trail: Trail, params: Params) -> _Found | None:
        self._note(trail, index)
        closure = _closure(node, trail)

        # Segments exhausted: a handler here, else an empty optional catch-all
        if index == len(self.segments):
            for candidate, path in closure:
                if candidate.is_terminal:
                    return candidate, path, params
            for candidate, path in closure:
                child = candidate.optional_catch_all
                if child is not None:
                    found = self._terminal(child, (*path, child), {**params, _name(child): ()})
                    if found is not None:
                        return found
            return None

        segment = self.segments[index]

        # 1. Static
        for candidate, path in closure:
            child = candidate.static_children.get(segment)
            if child is not None:
                found = self.walk(child, index + 1, (*path, child), params)
                if found is not None:
                    return found

        # 2. Dynamic
        if segment:
            for candidate, path in closure:
                child = candidate.dynamic
                if child is not None:
                    found = self.walk(child, index + 1, (*path, child), {**params, _name(child): segment})
                    if found is not None:
                        return found

        # 3. Catch-all, then 4. optional catch-all: consume everything left
        rest = self.segments[index:]
        for attr in ("catch_all", "optional_catch_all"):
            for candidate, path in closure:
                child = getattr(candidate, attr)
                if child is not None:
                    self._note((*path, child), len(self.segments))
                    found = self._terminal(child, (*path, child), {**params, _name(child): rest})
                    if found is not None:
                        return found

        return None

    def _terminal(self, node: RouteNode, trail: Trail, params: Params) -> _Found | None:
        """Stop at *node*: it or one of its groups must carry a handler."""
        for candidate, path in _closure(node, trail):
            if candidate.is_terminal:
                return candidate, path, params
        return None


def _name(node: RouteNode) -> str:
    """Parameter name bound by a dynamic or catch-all child."""
    return node.descriptors[-1].name
