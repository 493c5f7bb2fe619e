"""Thicket exception hierarchy.

Shared across the parser, builder, table, and CLI so every module
raises and catches the same types.

Build-time problems are not raised one at a time.  The builder collects
every :class:`Conflict` it finds and raises a single :class:`BuildError`
carrying all of them, so one rebuild surfaces the complete list.

A request path that matches nothing is *not* an error: the matcher
returns a :class:`~thicket.routing.route.NotFound` value instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ThicketError(Exception):
    """Base for all thicket-specific errors."""


class ConfigurationError(ThicketError):
    """Raised when configuration or builder usage is invalid.

    Covers bad config values, inserting after ``build()``, and
    re-entering a builder that is already building.
    """


class SegmentSyntaxError(ThicketError):
    """A raw segment name has malformed bracket or parenthesis syntax.

    Examples of invalid names: ``[]``, ``[...]``, ``[[...]]``, ``()``,
    ``[slug``, ``(group``, ``[a]b``.
    """

    def __init__(self, segment: str, reason: str) -> None:
        self.segment = segment
        self.reason = reason
        super().__init__(f"Invalid segment {segment!r}: {reason}")


class ConflictKind(Enum):
    """Category of a build-time conflict."""

    SEGMENT_SYNTAX = "segment-syntax"
    AMBIGUOUS_NAME = "ambiguous-name"
    DUPLICATE_HANDLER = "duplicate-handler"
    MULTIPLE_RESTRICTED_CHILDREN = "multiple-restricted-children"
    PAGE_API_COLLISION = "page-api-collision"
    DUPLICATE_PATH = "duplicate-path"


@dataclass(frozen=True, slots=True)
class Conflict:
    """A single problem found while building a route tree.

    Attributes:
        kind: The conflict category.
        location: Tree key where the conflict sits (groups included),
            e.g. ``"/(shop)/users"``.
        message: Human-readable description.
        chains: Every raw segment chain involved, each joined with
            ``/``, sorted so the report does not depend on insertion order.
    """

    kind: ConflictKind
    location: str
    message: str
    chains: tuple[str, ...] = ()

    def __str__(self) -> str:
        text = f"[{self.kind.value}] {self.location}: {self.message}"
        if self.chains:
            text += " (" + ", ".join(self.chains) + ")"
        return text


class BuildError(ThicketError):
    """Raised by the tree builder when one or more conflicts were found.

    ``conflicts`` holds every conflict from the build, not just the first.
    """

    def __init__(self, conflicts: tuple[Conflict, ...]) -> None:
        self.conflicts = conflicts
        count = len(conflicts)
        noun = "conflict" if count == 1 else "conflicts"
        lines = [f"Route tree build failed with {count} {noun}:"]
        lines.extend(f"  - {conflict}" for conflict in conflicts)
        super().__init__("\n".join(lines))

    def of_kind(self, kind: ConflictKind) -> tuple[Conflict, ...]:
        """Return only the conflicts of *kind*."""
        return tuple(c for c in self.conflicts if c.kind is kind)


class MethodNotAllowed(ThicketError):  # noqa: N818
    """The matched route exists but has no handler for this HTTP method.

    ``allowed`` lists the methods the route does serve, so the HTTP layer
    can build an ``Allow`` header.
    """

    def __init__(self, method: str, allowed: frozenset[str]) -> None:
        self.method = method
        self.allowed = allowed
        allow_value = ", ".join(sorted(allowed)) or "none"
        super().__init__(f"Method {method} not allowed. Allowed methods: {allow_value}")
