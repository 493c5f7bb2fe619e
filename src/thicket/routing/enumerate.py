"""Static path enumeration for pre-rendering.

For a route with parameter segments, asks one value-source callback per
parameter for the values it may take, then emits every concrete path in
the Cartesian product::

    paths = await enumerate_static_paths(
        tree,
        "/blog/[category]/[slug]",
        {"category": list_categories, "slug": list_slugs},
    )
    paths.urls  # ("/blog/news/hello", "/blog/news/launch", ...)

Pipeline:

    1. Resolve the selector to a node; read its parameter ancestors
    2. Call every callback concurrently (anyio task group), each under a
       shared CapacityLimiter and its own fail_after() timeout
    3. Drop structurally invalid values, recording a diagnostic
    4. Product in ancestor declaration order, then callback order
    5. Deduplicate by path, first occurrence wins

A failing or slow callback counts as "no values": the node yields no
paths and a diagnostic explains why.  Nothing here raises for callback
failures.
"""

from __future__ import annotations

import functools
import inspect
import itertools
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any

import anyio
import anyio.to_thread

from thicket.config import ThicketConfig
from thicket.routing.route import (
    EnumerationDiagnostic,
    HandlerKind,
    ParamValue,
    StaticPath,
    StaticPathSet,
)
from thicket.routing.segments import SegmentDescriptor, SegmentKind
from thicket.routing.tree import RouteNode, RouteTree

logger = logging.getLogger("thicket.enumerate")

# A callback returns (or resolves to) the values one parameter may take
ValueSource = Callable[[], Iterable[Any] | Awaitable[Iterable[Any]]]


def _resolve_node(tree: RouteTree, selector: RouteNode | str) -> RouteNode:
    if isinstance(selector, RouteNode):
        return selector
    node = tree.find(selector)
    if node is None:
        msg = f"No single route matches selector {selector!r}"
        raise LookupError(msg)
    return node


def _run_source(source: ValueSource) -> list[Any] | Awaitable[Iterable[Any]]:
    result = source()
    if inspect.isawaitable(result):
        return result
    # Generators do their work while iterated, so drain them here too
    return list(result)


async def _call(source: ValueSource) -> list[Any]:
    if inspect.iscoroutinefunction(source):
        return list(await source())
    # Sync sources may block on I/O; keep them off the event loop
    result = await anyio.to_thread.run_sync(_run_source, source, abandon_on_cancel=True)
    if inspect.isawaitable(result):
        return list(await result)
    return result


def _valid_segment(value: Any) -> bool:
    return isinstance(value, str) and bool(value) and "/" not in value


def _normalize(desc: SegmentDescriptor, value: Any) -> ParamValue | None:
    """Return the value in match form, or ``None`` if it cannot fill *desc*."""
    if desc.kind is SegmentKind.DYNAMIC:
        return value if _valid_segment(value) else None
    if isinstance(value, str) or not isinstance(value, Sequence):
        return None
    parts = tuple(value)
    if not all(_valid_segment(p) for p in parts):
        return None
    if desc.kind is SegmentKind.CATCH_ALL and not parts:
        return None
    return parts


class _Enumeration:
    """One node's enumeration: collects values and diagnostics."""

    __slots__ = ("diagnostics", "limiter", "node", "timeout", "values")

    def __init__(self, node: RouteNode, limiter: anyio.CapacityLimiter, timeout: float | None) -> None:
        self.node = node
        self.limiter = limiter
        self.timeout = timeout
        self.values: dict[str, list[ParamValue]] = {}
        self.diagnostics: list[EnumerationDiagnostic] = []

    def _diagnose(self, param: str | None, message: str) -> None:
        self.diagnostics.append(EnumerationDiagnostic(self.node.pattern, param, message))

    async def _fetch(self, desc: SegmentDescriptor, source: ValueSource) -> None:
        try:
            async with self.limiter:
                with anyio.fail_after(self.timeout):
                    raw = await _call(source)
        except TimeoutError:
            logger.warning(
                "Value source for %r on %s timed out after %ss",
                desc.name, self.node.pattern, self.timeout,
            )
            self._diagnose(desc.name, f"value source timed out after {self.timeout}s")
            self.values[desc.name] = []
            return
        except Exception as exc:
            logger.warning(
                "Value source for %r on %s failed",
                desc.name, self.node.pattern, exc_info=True,
            )
            self._diagnose(desc.name, f"value source failed: {exc!r}")
            self.values[desc.name] = []
            return

        accepted: list[ParamValue] = []
        for value in raw:
            normalized = _normalize(desc, value)
            if normalized is None:
                self._diagnose(desc.name, f"dropped invalid {desc.kind.value} value {value!r}")
                continue
            accepted.append(normalized)
        self.values[desc.name] = accepted

    async def run(self, callbacks: Mapping[str, ValueSource]) -> StaticPathSet:
        params = self.node.param_segments
        missing = [d.name for d in params if d.name not in callbacks]
        for name in missing:
            self._diagnose(name, "no value source provided")
        if missing:
            return StaticPathSet(diagnostics=tuple(self.diagnostics))

        async with anyio.create_task_group() as tg:
            for desc in params:
                tg.start_soon(self._fetch, desc, callbacks[desc.name])

        # Diagnostics arrive in completion order; report them by declaration
        order = {d.name: i for i, d in enumerate(params)}
        self.diagnostics.sort(key=lambda d: order.get(d.param or "", -1))

        seen: set[str] = set()
        paths: list[StaticPath] = []
        for combo in itertools.product(*(self.values[d.name] for d in params)):
            bound = dict(zip((d.name for d in params), combo, strict=True))
            url = _build_url(self.node.descriptors, bound)
            if url in seen:
                continue
            seen.add(url)
            paths.append(StaticPath(path=url, params=bound))

        return StaticPathSet(paths=tuple(paths), diagnostics=tuple(self.diagnostics))


def _build_url(descriptors: Iterable[SegmentDescriptor], params: Mapping[str, ParamValue]) -> str:
    parts: list[str] = []
    for desc in descriptors:
        if desc.kind is SegmentKind.STATIC:
            parts.append(desc.literal)
        elif desc.kind is SegmentKind.DYNAMIC:
            parts.append(params[desc.name])  # type: ignore[arg-type]
        elif desc.is_param:
            parts.extend(params[desc.name])
    return "/" + "/".join(parts)


async def enumerate_static_paths(
    tree: RouteTree,
    selector: RouteNode | str,
    callbacks: Mapping[str, ValueSource],
    *,
    config: ThicketConfig | None = None,
    limiter: anyio.CapacityLimiter | None = None,
) -> StaticPathSet:
    """Enumerate the concrete paths of one route.

    Args:
        tree: The route tree snapshot.
        selector: A node, or a tree key / URL pattern for ``tree.find()``.
        callbacks: Parameter name to value source.  Dynamic sources yield
            strings; catch-all sources yield sequences of strings.
        config: Supplies the concurrency bound and per-call timeout.
        limiter: Share one limiter across several enumerations.

    Returns:
        The deduplicated paths plus any diagnostics.

    Raises:
        LookupError: If *selector* does not identify exactly one node.
    """
    config = config or ThicketConfig()
    node = _resolve_node(tree, selector)
    limiter = limiter or anyio.CapacityLimiter(config.enumerate_concurrency)
    return await _Enumeration(node, limiter, config.enumerate_timeout).run(callbacks)


async def enumerate_all(
    tree: RouteTree,
    callbacks: Mapping[str, Mapping[str, ValueSource]],
    *,
    config: ThicketConfig | None = None,
) -> dict[str, StaticPathSet]:
    """Enumerate every page route in *tree*.

    *callbacks* maps a route's tree key or URL pattern to its value
    sources.  Routes without parameters need no entry.  Each route is
    isolated: an unexpected failure while enumerating one route becomes
    a diagnostic on that route only.

    Returns:
        Tree key to path set, in tree order.
    """
    config = config or ThicketConfig()
    limiter = anyio.CapacityLimiter(config.enumerate_concurrency)
    pages = [node for node in tree.nodes() if node.handlers.get(HandlerKind.PAGE) is not None]
    results: dict[str, StaticPathSet] = {}

    async def _one(node: RouteNode) -> None:
        sources = callbacks.get(node.key) or callbacks.get(node.pattern) or {}
        try:
            results[node.key] = await _Enumeration(node, limiter, config.enumerate_timeout).run(sources)
        except Exception as exc:
            logger.exception("Enumeration of %s failed", node.pattern)
            diagnostic = EnumerationDiagnostic(node.pattern, None, f"enumeration failed: {exc!r}")
            results[node.key] = StaticPathSet(diagnostics=(diagnostic,))

    async with anyio.create_task_group() as tg:
        for node in pages:
            tg.start_soon(_one, node)

    return {node.key: results[node.key] for node in pages}


def enumerate_static_paths_sync(
    tree: RouteTree,
    selector: RouteNode | str,
    callbacks: Mapping[str, ValueSource],
    *,
    config: ThicketConfig | None = None,
) -> StaticPathSet:
    """Blocking wrapper around :func:`enumerate_static_paths` for build scripts."""
    return anyio.run(functools.partial(enumerate_static_paths, tree, selector, callbacks, config=config))
