"""Segment descriptor parsing.

Turns one raw segment name (normally a directory name) into a tagged
:class:`SegmentDescriptor`::

    "blog"          -> STATIC              literal="blog"
    "[slug]"        -> DYNAMIC             name="slug"
    "[...slug]"     -> CATCH_ALL           name="slug"
    "[[...slug]]"   -> OPTIONAL_CATCH_ALL  name="slug"
    "(marketing)"   -> GROUP               name="marketing"

Shapes are checked in that priority order: doubled brackets first, then
the ellipsis form, then single brackets, then parentheses.  Anything
that starts or ends like one of those shapes but does not match it is a
:class:`~thicket.errors.SegmentSyntaxError`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from thicket.errors import SegmentSyntaxError


class SegmentKind(Enum):
    """Kind of a route segment."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    CATCH_ALL = "catch-all"
    OPTIONAL_CATCH_ALL = "optional-catch-all"
    GROUP = "group"


# Kinds that bind a request parameter
PARAM_KINDS = frozenset({SegmentKind.DYNAMIC, SegmentKind.CATCH_ALL, SegmentKind.OPTIONAL_CATCH_ALL})

# Kinds that consume every remaining request segment
CATCH_ALL_KINDS = frozenset({SegmentKind.CATCH_ALL, SegmentKind.OPTIONAL_CATCH_ALL})

_ELLIPSIS = "..."

_OPTIONAL_RE = re.compile(r"^\[\[(.*)\]\]$")
_CATCH_ALL_RE = re.compile(r"^\[\.\.\.(.*)\]$")
_DYNAMIC_RE = re.compile(r"^\[(.*)\]$")
_GROUP_RE = re.compile(r"^\((.*)\)$")

# Characters that may never appear inside a parameter name or group label
_FORBIDDEN = frozenset("[]()/")


@dataclass(frozen=True, slots=True)
class SegmentDescriptor:
    """One tree level's declared kind and name.

    Attributes:
        kind: The segment kind.
        name: Parameter key for dynamic kinds, label for groups, ``""``
            for static segments.
        literal: Literal text for static segments, ``""`` otherwise.
        raw: The original segment text.
    """

    kind: SegmentKind
    name: str = ""
    literal: str = ""
    raw: str = ""

    @property
    def is_param(self) -> bool:
        return self.kind in PARAM_KINDS

    @property
    def is_group(self) -> bool:
        return self.kind is SegmentKind.GROUP

    def __str__(self) -> str:
        return self.raw or self.literal


def _check_name(segment: str, name: str, what: str) -> str:
    if not name:
        raise SegmentSyntaxError(segment, f"empty {what}")
    bad = sorted(_FORBIDDEN.intersection(name))
    if bad:
        raise SegmentSyntaxError(segment, f"{what} contains {''.join(bad)!r}")
    return name


def parse_segment(segment: str) -> SegmentDescriptor:
    """Parse a single raw segment name.

    Raises:
        SegmentSyntaxError: If the segment is empty or its bracket or
            parenthesis syntax is malformed.

    Examples::

        parse_segment("users").kind        # SegmentKind.STATIC
        parse_segment("[id]").name         # "id"
        parse_segment("[[...path]]").kind  # SegmentKind.OPTIONAL_CATCH_ALL
    """
    if not segment:
        raise SegmentSyntaxError(segment, "empty segment")
    if "/" in segment:
        raise SegmentSyntaxError(segment, "segment contains '/'")

    if match := _OPTIONAL_RE.match(segment):
        inner = match.group(1)
        if inner.startswith(_ELLIPSIS):
            inner = inner[len(_ELLIPSIS):]
        name = _check_name(segment, inner, "optional catch-all name")
        if name.startswith("."):
            raise SegmentSyntaxError(segment, "catch-all marker must be exactly '...'")
        return SegmentDescriptor(SegmentKind.OPTIONAL_CATCH_ALL, name=name, raw=segment)

    if match := _CATCH_ALL_RE.match(segment):
        name = _check_name(segment, match.group(1), "catch-all name")
        if name.startswith("."):
            raise SegmentSyntaxError(segment, "catch-all marker must be exactly '...'")
        return SegmentDescriptor(SegmentKind.CATCH_ALL, name=name, raw=segment)

    if match := _DYNAMIC_RE.match(segment):
        name = _check_name(segment, match.group(1), "parameter name")
        if name.startswith("."):
            raise SegmentSyntaxError(segment, "catch-all marker must be exactly '...'")
        return SegmentDescriptor(SegmentKind.DYNAMIC, name=name, raw=segment)

    if match := _GROUP_RE.match(segment):
        label = _check_name(segment, match.group(1), "group label")
        return SegmentDescriptor(SegmentKind.GROUP, name=label, raw=segment)

    if segment[0] in "[(" or segment[-1] in "])":
        raise SegmentSyntaxError(segment, "unbalanced brackets or parentheses")

    return SegmentDescriptor(SegmentKind.STATIC, literal=segment, raw=segment)


def parse_chain(raw_segments: Iterable[str]) -> tuple[SegmentDescriptor, ...]:
    """Parse a whole segment chain, root-first.

    Beyond per-segment syntax this rejects chains that could never match:
    a URL-visible segment after a catch-all (which always consumes the
    rest of the path), and a parameter name used twice.

    Raises:
        SegmentSyntaxError: On the first problem found in the chain.
    """
    descriptors: list[SegmentDescriptor] = []
    seen_params: set[str] = set()
    catch_all: SegmentDescriptor | None = None

    for raw in raw_segments:
        desc = parse_segment(raw)
        if catch_all is not None and not desc.is_group:
            raise SegmentSyntaxError(
                raw, f"segment follows catch-all {catch_all.raw!r}, which must be last"
            )
        if desc.is_param:
            if desc.name in seen_params:
                raise SegmentSyntaxError(raw, f"parameter {desc.name!r} is used twice in one route")
            seen_params.add(desc.name)
        if desc.kind in CATCH_ALL_KINDS:
            catch_all = desc
        descriptors.append(desc)

    return tuple(descriptors)


def split_path(path: str) -> tuple[str, ...]:
    """Split a request path into segments, dropping empty ones.

    ``"/docs/guides/"`` and ``"docs//guides"`` both give
    ``("docs", "guides")``; ``"/"`` gives ``()``.
    """
    return tuple(part for part in path.split("/") if part)


def format_chain(descriptors: Iterable[SegmentDescriptor]) -> str:
    """Render descriptors as a tree key, groups included (``/(a)/blog/[slug]``)."""
    return "/" + "/".join(str(d) for d in descriptors)


def format_pattern(descriptors: Iterable[SegmentDescriptor]) -> str:
    """Render descriptors as a URL pattern, groups omitted (``/blog/[slug]``)."""
    parts = [str(d) for d in descriptors if not d.is_group]
    return "/" + "/".join(parts)
