"""Route sources: where segment-chain listings come from.

A *source* is anything with a ``listing()`` method producing
``(raw segments, HandlerRecord)`` pairs.  The builder only sees the
listing, so the same tree can come from a directory, an embedded
manifest, or generated code.

Filesystem convention (``FilesystemSource``)::

    app/
      layout.py              # LAYOUT at /
      page.py                # PAGE   GET /
      not_found.py           # NOT_FOUND boundary for the whole tree
      (marketing)/
        layout.py            # LAYOUT for the group, URL-invisible
        about/page.py        # PAGE   GET /about
      blog/
        [slug]/
          page.py            # PAGE   GET /blog/[slug]
          error.py           # ERROR boundary for the post
      api/
        items/route.py       # API    GET/POST... /api/items
      _components/           # private: never routed

Directory names are the raw segments; file stems pick the handler kind
(see :class:`~thicket.config.ThicketConfig`).
"""

from __future__ import annotations

import importlib.util
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol, TypeAlias, runtime_checkable

from thicket.config import ThicketConfig
from thicket.routing.route import HandlerKind, HandlerRecord
from thicket.routing.segments import split_path

logger = logging.getLogger("thicket.sources")

# One listing entry: raw segment names (or a "a/b/[c]" string) and its record
ListingEntry: TypeAlias = tuple[Sequence[str] | str, HandlerRecord]

# HTTP method names recognised as API handler functions
_HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


@runtime_checkable
class RouteSource(Protocol):
    """Anything that can produce a segment-chain listing."""

    def listing(self) -> Iterable[ListingEntry]: ...


class ManifestSource:
    """A listing declared in code.

    Keys are slash-joined raw chains; values are one record or several::

        ManifestSource({
            "/": [HandlerRecord(HandlerKind.LAYOUT, root_layout),
                  HandlerRecord(HandlerKind.PAGE, home)],
            "/blog/[slug]": HandlerRecord(HandlerKind.PAGE, show_post),
        })
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, HandlerRecord | Sequence[HandlerRecord]]) -> None:
        self._entries = dict(entries)

    def listing(self) -> Iterator[ListingEntry]:
        for chain, value in self._entries.items():
            records = (value,) if isinstance(value, HandlerRecord) else tuple(value)
            for record in records:
                yield split_path(chain), record


class FilesystemSource:
    """Walk a directory tree and list every handler file in it.

    Args:
        root: The app directory.
        config: File naming and loading settings.

    With ``config.load_modules`` (the default) each handler file is
    imported and the record's target is the function named after the
    file stem (``page`` in ``page.py``), falling back to ``handler`` and
    then to the module itself.  API records carry the module as target
    and the HTTP-method functions it defines (``GET``, ``post``, ...) as
    ``methods``.  Without loading, targets are file paths and API
    methods are unknown.
    """

    __slots__ = ("_config", "_root")

    def __init__(self, root: str | Path, config: ThicketConfig | None = None) -> None:
        self._root = Path(root).resolve()
        self._config = config or ThicketConfig()

    @property
    def root(self) -> Path:
        return self._root

    def listing(self) -> list[ListingEntry]:
        """Walk the directory and return its listing, sorted by path.

        Raises:
            FileNotFoundError: If the root directory does not exist.
        """
        if not self._root.is_dir():
            msg = f"App directory not found: {self._root}"
            raise FileNotFoundError(msg)

        entries: list[ListingEntry] = []
        self._walk_directory(self._root, [], entries)
        logger.debug("Discovered %d handler files under %s", len(entries), self._root)
        return entries

    def _ignored(self, name: str) -> bool:
        return name.startswith(self._config.ignore_prefixes)

    def _walk_directory(self, directory: Path, segments: list[str], entries: list[ListingEntry]) -> None:
        """Recursively collect handler files, files before subdirectories."""
        handler_files = self._config.handler_files
        children = sorted(directory.iterdir())

        for item in children:
            if not item.is_file() or item.suffix != self._config.suffix:
                continue
            kind = handler_files.get(item.stem)
            if kind is None:
                continue
            entries.append((tuple(segments), self._record(item, kind)))

        for item in children:
            if not item.is_dir() or self._ignored(item.name):
                continue
            self._walk_directory(item, [*segments, item.name], entries)

    def _record(self, file: Path, kind: HandlerKind) -> HandlerRecord:
        source = str(file.relative_to(self._root))
        if not self._config.load_modules:
            return HandlerRecord(kind=kind, target=file, source=source)

        module = _load_module(file)
        if kind is HandlerKind.API:
            methods = frozenset(
                method
                for method in _HTTP_METHODS
                if callable(getattr(module, method, None)) or callable(getattr(module, method.lower(), None))
            )
            return HandlerRecord(kind=kind, target=module, source=source, methods=methods)

        return HandlerRecord(kind=kind, target=_entry_point(module, file.stem), source=source)


def _load_module(file: Path) -> ModuleType:
    """Import a handler file under a private, unique module name."""
    module_name = f"_thicket_{file.stem}_{id(file)}"
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        msg = f"Cannot load handler file {file}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _entry_point(module: ModuleType, stem: str) -> Any:
    for name in (stem, "handler"):
        func = getattr(module, name, None)
        if func is not None and callable(func):
            return func
    return module
