"""Published route tree with copy-on-rebuild.

Readers take a snapshot with ``table.tree`` (a plain attribute read, no
lock) and keep it for the whole request.  A rebuild compiles a brand
new tree off to the side and publishes it with a single reference
assignment, so a rebuild never disturbs a match already in progress::

    table = RouteTable(FilesystemSource("app"))
    tree = table.tree              # snapshot for this request
    result = tree.match("/blog/hello")

    table.rebuild()                # after the source changed on disk

Free-threading safety:
    Rebuilds are serialized by a ``threading.Lock``; a second rebuild
    requested while one runs waits for it, then builds again.  Readers
    never touch the lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence

from thicket.errors import BuildError, ConfigurationError
from thicket.routing.builder import TreeBuilder
from thicket.routing.route import NotFound, RouteMatch
from thicket.routing.tree import RouteTree
from thicket.sources import ListingEntry, RouteSource

logger = logging.getLogger("thicket.table")


class RouteTable:
    """Holds the current route tree and swaps in rebuilt ones.

    Args:
        source: Listing source used by :meth:`rebuild` when none is
            passed.  When given, the first tree is built immediately.
    """

    __slots__ = ("_generation", "_rebuild_lock", "_source", "_tree")

    def __init__(self, source: RouteSource | Iterable[ListingEntry] | None = None) -> None:
        # One-shot listings may be iterators, so only sources are kept
        self._source = source if isinstance(source, RouteSource) else None
        self._rebuild_lock = threading.Lock()
        self._generation = 0
        self._tree: RouteTree | None = None
        if source is not None:
            self.rebuild(source)

    @property
    def tree(self) -> RouteTree:
        """The currently published tree snapshot.

        Raises:
            ConfigurationError: If no tree has been built yet.
        """
        tree = self._tree
        if tree is None:
            msg = "No route tree has been published. Call rebuild() first."
            raise ConfigurationError(msg)
        return tree

    @property
    def generation(self) -> int:
        """Generation of the published tree (``0`` before the first build)."""
        tree = self._tree
        return tree.generation if tree is not None else 0

    def rebuild(self, source: RouteSource | Iterable[ListingEntry] | None = None) -> RouteTree:
        """Build a new tree from *source* and publish it.

        On failure the previously published tree stays in place and the
        :class:`~thicket.errors.BuildError` propagates.
        """
        source = source if source is not None else self._source
        if source is None:
            msg = "RouteTable.rebuild() needs a source."
            raise ConfigurationError(msg)

        with self._rebuild_lock:
            builder = TreeBuilder()
            builder.extend(source)
            try:
                built = builder.build()
            except BuildError as exc:
                logger.warning(
                    "Rebuild failed with %d conflicts; keeping generation %d",
                    len(exc.conflicts), self.generation,
                )
                raise

            self._generation += 1
            tree = RouteTree(root=built.root, generation=self._generation)
            self._tree = tree
            if isinstance(source, RouteSource):
                self._source = source
            logger.info("Published route tree generation %d (%d routes)", tree.generation, len(tree.routes()))
            return tree

    def match(self, path: str | Sequence[str]) -> RouteMatch | NotFound:
        """Match against the current snapshot."""
        return self.tree.match(path)
