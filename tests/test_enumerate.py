"""Tests for thicket.routing.enumerate: static path enumeration."""

import threading
import time
from collections.abc import Awaitable, Callable, Iterator

import anyio
import pytest

from thicket.config import ThicketConfig
from thicket.routing.builder import build_tree
from thicket.routing.enumerate import enumerate_all, enumerate_static_paths, enumerate_static_paths_sync
from thicket.routing.route import HandlerKind, HandlerRecord
from thicket.routing.tree import RouteTree


def _tree(*chains: str) -> RouteTree:
    return build_tree([(chain, HandlerRecord(HandlerKind.PAGE, target=chain)) for chain in chains])


def _values(*values: object) -> Callable[[], list[object]]:
    return lambda: list(values)


@pytest.mark.anyio
class TestEnumerateStaticPaths:
    async def test_product_in_declaration_order(self) -> None:
        tree = _tree("blog/[category]/[slug]")
        paths = await enumerate_static_paths(
            tree,
            "/blog/[category]/[slug]",
            {"slug": _values("a", "b"), "category": _values("news", "tech")},
        )
        assert paths.urls == ("/blog/news/a", "/blog/news/b", "/blog/tech/a", "/blog/tech/b")
        assert paths.paths[1].params == {"category": "news", "slug": "b"}
        assert paths.diagnostics == ()

    async def test_async_callbacks(self) -> None:
        async def slugs() -> list[str]:
            await anyio.sleep(0)
            return ["hello", "world"]

        paths = await enumerate_static_paths(_tree("blog/[slug]"), "/blog/[slug]", {"slug": slugs})
        assert paths.urls == ("/blog/hello", "/blog/world")

    async def test_sync_callbacks_run_in_worker_thread(self) -> None:
        seen: list[int] = []

        def slugs() -> list[str]:
            seen.append(threading.get_ident())
            return ["x"]

        await enumerate_static_paths(_tree("[slug]"), "/[slug]", {"slug": slugs})
        assert seen and seen[0] != threading.get_ident()

    async def test_catch_all_values_are_sequences(self) -> None:
        paths = await enumerate_static_paths(
            _tree("docs/[...slug]"),
            "/docs/[...slug]",
            {"slug": _values(("guides", "install"), ["api"], ())},
        )
        assert paths.urls == ("/docs/guides/install", "/docs/api")
        assert paths.paths[1].params == {"slug": ("api",)}
        (diagnostic,) = paths.diagnostics
        assert diagnostic.param == "slug"
        assert "dropped invalid catch-all value ()" in diagnostic.message

    async def test_optional_catch_all_allows_empty(self) -> None:
        paths = await enumerate_static_paths(
            _tree("shop/[[...slug]]"),
            "/shop/[[...slug]]",
            {"slug": _values((), ("electronics", "laptops"))},
        )
        assert paths.urls == ("/shop", "/shop/electronics/laptops")

    async def test_invalid_dynamic_values_dropped(self) -> None:
        paths = await enumerate_static_paths(
            _tree("[slug]"), "/[slug]", {"slug": _values("ok", "a/b", "", 3, ("x",))}
        )
        assert paths.urls == ("/ok",)
        assert len(paths.diagnostics) == 4

    async def test_deduplicated_by_path(self) -> None:
        paths = await enumerate_static_paths(_tree("[slug]"), "/[slug]", {"slug": _values("a", "b", "a")})
        assert paths.urls == ("/a", "/b")

    async def test_groups_not_in_paths(self) -> None:
        paths = await enumerate_static_paths(
            _tree("(shop)/products/[id]"), "/products/[id]", {"id": _values("1", "2")}
        )
        assert paths.urls == ("/products/1", "/products/2")

    async def test_static_route_yields_itself(self) -> None:
        paths = await enumerate_static_paths(_tree("about"), "/about", {})
        assert paths.urls == ("/about",)
        assert paths.paths[0].params == {}

    async def test_zero_values_zero_paths(self) -> None:
        paths = await enumerate_static_paths(_tree("[slug]"), "/[slug]", {"slug": _values()})
        assert len(paths) == 0
        assert paths.diagnostics == ()

    async def test_missing_callback(self) -> None:
        paths = await enumerate_static_paths(_tree("[a]/[b]"), "/[a]/[b]", {"a": _values("x")})
        assert len(paths) == 0
        (diagnostic,) = paths.diagnostics
        assert diagnostic.param == "b"
        assert diagnostic.message == "no value source provided"

    async def test_failing_callback(self) -> None:
        def broken() -> list[str]:
            raise RuntimeError("database down")

        paths = await enumerate_static_paths(
            _tree("[a]/[b]"), "/[a]/[b]", {"a": _values("x"), "b": broken}
        )
        assert len(paths) == 0
        (diagnostic,) = paths.diagnostics
        assert diagnostic.param == "b"
        assert "database down" in diagnostic.message

    async def test_timeout(self) -> None:
        async def slow() -> list[str]:
            await anyio.sleep(5)
            return ["never"]

        config = ThicketConfig(enumerate_timeout=0.05)
        paths = await enumerate_static_paths(_tree("[slug]"), "/[slug]", {"slug": slow}, config=config)
        assert len(paths) == 0
        (diagnostic,) = paths.diagnostics
        assert "timed out" in diagnostic.message

    async def test_blocking_generator_times_out(self) -> None:
        def slugs() -> Iterator[str]:
            time.sleep(0.5)
            yield "a"

        config = ThicketConfig(enumerate_timeout=0.1)
        start = anyio.current_time()
        paths = await enumerate_static_paths(_tree("[slug]"), "/[slug]", {"slug": slugs}, config=config)
        assert anyio.current_time() - start < 0.4
        assert len(paths) == 0
        (diagnostic,) = paths.diagnostics
        assert "timed out" in diagnostic.message

    async def test_generator_drained_in_worker_thread(self) -> None:
        seen: list[int] = []

        def slugs() -> Iterator[str]:
            seen.append(threading.get_ident())
            yield "x"

        paths = await enumerate_static_paths(_tree("[slug]"), "/[slug]", {"slug": slugs})
        assert paths.urls == ("/x",)
        assert seen and seen[0] != threading.get_ident()

    async def test_concurrency_bounded(self) -> None:
        active = 0
        peak = 0

        def source(value: str) -> Callable[[], Awaitable[list[str]]]:
            async def fetch() -> list[str]:
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await anyio.sleep(0.01)
                active -= 1
                return [value]

            return fetch

        tree = _tree("[a]/[b]/[c]")
        config = ThicketConfig(enumerate_concurrency=1)
        paths = await enumerate_static_paths(
            tree, "/[a]/[b]/[c]", {"a": source("1"), "b": source("2"), "c": source("3")}, config=config
        )
        assert paths.urls == ("/1/2/3",)
        assert peak == 1

    async def test_idempotent(self) -> None:
        tree = _tree("[a]/[...b]")
        callbacks = {"a": _values("x", "y"), "b": _values(("1",), ("2", "3"))}
        first = await enumerate_static_paths(tree, "/[a]/[...b]", callbacks)
        second = await enumerate_static_paths(tree, "/[a]/[...b]", callbacks)
        assert first == second

    async def test_selector_by_node_and_key(self) -> None:
        tree = _tree("(g)/[slug]")
        node = tree.find("/(g)/[slug]")
        assert node is not None
        by_node = await enumerate_static_paths(tree, node, {"slug": _values("a")})
        by_key = await enumerate_static_paths(tree, "/(g)/[slug]", {"slug": _values("a")})
        assert by_node == by_key

    async def test_unknown_selector(self) -> None:
        with pytest.raises(LookupError, match="No single route"):
            await enumerate_static_paths(_tree("about"), "/contact", {})


@pytest.mark.anyio
class TestEnumerateAll:
    async def test_every_page(self) -> None:
        tree = build_tree([
            ("", HandlerRecord(HandlerKind.PAGE, target="home")),
            ("(shop)", HandlerRecord(HandlerKind.LAYOUT, target="layout")),
            ("(shop)/[item]", HandlerRecord(HandlerKind.PAGE, target="item")),
            ("api/items", HandlerRecord(HandlerKind.API, target="api")),
        ])
        results = await enumerate_all(tree, {"/[item]": {"item": _values("hat", "cap")}})
        assert list(results) == ["/", "/(shop)/[item]"]
        assert results["/"].urls == ("/",)
        assert results["/(shop)/[item]"].urls == ("/hat", "/cap")

    async def test_failures_isolated_per_route(self) -> None:
        def broken() -> list[str]:
            raise ValueError("boom")

        tree = _tree("a/[x]", "b/[y]")
        results = await enumerate_all(tree, {"/a/[x]": {"x": broken}, "/b/[y]": {"y": _values("1")}})
        assert len(results["/a/[x]"]) == 0
        assert results["/a/[x]"].diagnostics
        assert results["/b/[y]"].urls == ("/b/1",)


class TestEnumerateSync:
    def test_blocking_wrapper(self) -> None:
        paths = enumerate_static_paths_sync(_tree("[slug]"), "/[slug]", {"slug": _values("a", "b")})
        assert paths.urls == ("/a", "/b")
