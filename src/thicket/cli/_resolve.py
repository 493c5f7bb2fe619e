"""Directory resolution shared by the CLI commands.

Turns a user-supplied directory into a built route tree, printing a
short error and exiting 1 when that is not possible.
"""

import sys

from thicket.config import ThicketConfig
from thicket.errors import BuildError
from thicket.routing.builder import build_tree
from thicket.routing.tree import RouteTree
from thicket.sources import FilesystemSource


def resolve_source(directory: str, *, load_modules: bool = False) -> FilesystemSource:
    """Create a filesystem source for *directory*, exiting 1 if it is missing."""
    source = FilesystemSource(directory, ThicketConfig(load_modules=load_modules))
    if not source.root.is_dir():
        print(f"Error: App directory not found: {source.root}", file=sys.stderr)
        raise SystemExit(1)
    return source


def resolve_tree(directory: str, *, load_modules: bool = False) -> RouteTree:
    """Build the route tree for *directory*.

    Conflicts are printed to stderr, one per line, followed by exit 1.
    """
    source = resolve_source(directory, load_modules=load_modules)
    try:
        return build_tree(source)
    except BuildError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc
