"""Tests for thicket.table: published trees and copy-on-rebuild."""

import logging
import threading

import pytest

from thicket.errors import BuildError, ConfigurationError
from thicket.routing.route import HandlerKind, HandlerRecord
from thicket.sources import ManifestSource
from thicket.table import RouteTable


def _page(name: str) -> HandlerRecord:
    return HandlerRecord(HandlerKind.PAGE, target=name, source=name)


class _MutableSource:
    """A source whose listing can change between rebuilds."""

    def __init__(self, entries: dict[str, HandlerRecord]) -> None:
        self.entries = entries

    def listing(self) -> list[tuple[str, HandlerRecord]]:
        return list(self.entries.items())


class TestRouteTable:
    def test_builds_on_creation(self) -> None:
        table = RouteTable(ManifestSource({"/about": _page("about")}))
        assert table.generation == 1
        assert table.match("/about")

    def test_empty_table(self) -> None:
        table = RouteTable()
        assert table.generation == 0
        with pytest.raises(ConfigurationError, match="rebuild"):
            _ = table.tree

    def test_rebuild_without_source(self) -> None:
        with pytest.raises(ConfigurationError, match="needs a source"):
            RouteTable().rebuild()

    def test_one_shot_listing_not_kept(self) -> None:
        table = RouteTable([("about", _page("about"))])
        assert table.match("/about")
        with pytest.raises(ConfigurationError):
            table.rebuild()

    def test_rebuild_publishes_new_snapshot(self) -> None:
        source = _MutableSource({"about": _page("about")})
        table = RouteTable(source)
        snapshot = table.tree

        source.entries["contact"] = _page("contact")
        rebuilt = table.rebuild()

        assert table.tree is rebuilt
        assert rebuilt.generation == 2
        assert table.match("/contact")
        # The earlier snapshot is untouched
        assert snapshot.generation == 1
        assert not snapshot.match("/contact")

    def test_failed_rebuild_keeps_previous_tree(self, caplog: pytest.LogCaptureFixture) -> None:
        source = _MutableSource({"users/[id]": _page("a")})
        table = RouteTable(source)
        before = table.tree

        source.entries["users/[userId]/edit"] = _page("b")
        with caplog.at_level(logging.WARNING, logger="thicket.table"), pytest.raises(BuildError):
            table.rebuild()

        assert table.tree is before
        assert table.generation == 1
        assert "keeping generation 1" in caplog.text

    def test_rebuild_with_new_source_replaces_default(self) -> None:
        table = RouteTable(ManifestSource({"/a": _page("a")}))
        table.rebuild(ManifestSource({"/b": _page("b")}))
        table.rebuild()
        assert table.match("/b")
        assert not table.match("/a")
        assert table.generation == 3

    def test_concurrent_rebuilds_serialized(self) -> None:
        table = RouteTable(ManifestSource({"/a": _page("a")}))

        def worker() -> None:
            for _ in range(10):
                table.rebuild()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert table.generation == 41

    def test_readers_never_see_partial_tree(self) -> None:
        table = RouteTable(ManifestSource({"/a": _page("a"), "/b/[x]": _page("bx")}))
        stop = threading.Event()
        failures: list[str] = []

        def reader() -> None:
            while not stop.is_set():
                tree = table.tree
                if not tree.match("/a") or not tree.match("/b/1"):
                    failures.append(f"generation {tree.generation}")

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for _ in range(20):
                table.rebuild()
        finally:
            stop.set()
            thread.join()

        assert failures == []
