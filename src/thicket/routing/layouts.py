"""Layout chain composition and boundary lookup.

Walks the trail a match actually took (groups included, since a group
can carry a layout even though it never shows in the URL) and collects
handlers root-first.  Nothing is rendered here; the chain goes to the
rendering layer, which nests the layouts around the page.

Given the tree::

    layout.py                 # RootLayout
    (shop)/layout.py          # ShopLayout
    (shop)/cart/page.py
    (shop)/cart/error.py      # CartError

matching ``/cart`` composes ``[RootLayout, ShopLayout]`` and the nearest
error boundary is ``CartError``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from thicket.routing.route import HandlerKind, HandlerRecord, NotFound, RouteMatch

if TYPE_CHECKING:
    from thicket.routing.tree import RouteNode


def collect(trail: Iterable[RouteNode], kind: HandlerKind) -> tuple[HandlerRecord, ...]:
    """Collect every present *kind* handler along *trail*, in trail order."""
    chain: list[HandlerRecord] = []
    for node in trail:
        record = node.handlers.get(kind)
        if record is not None:
            chain.append(record)
    return tuple(chain)


def compose_layout_chain(match: RouteMatch) -> tuple[HandlerRecord, ...]:
    """Layout handlers wrapping *match*, outermost (root) first.

    Ancestors without a layout contribute nothing.
    """
    return collect(match.trail, HandlerKind.LAYOUT)


def compose_chain(match: RouteMatch, kind: HandlerKind) -> tuple[HandlerRecord, ...]:
    """Like :func:`compose_layout_chain` for any handler kind.

    Useful for templates and loading states, which nest the same way
    layouts do.
    """
    return collect(match.trail, kind)


def nearest_boundary(result: RouteMatch | NotFound, kind: HandlerKind) -> HandlerRecord | None:
    """The deepest *kind* handler on the result's trail, or ``None``.

    For a :class:`NotFound` the trail is the deepest point the matcher
    reached, so ``nearest_boundary(result, HandlerKind.NOT_FOUND)``
    finds the most specific not-found handler for the request.
    """
    for node in reversed(result.trail):
        record = node.handlers.get(kind)
        if record is not None:
            return record
    return None
