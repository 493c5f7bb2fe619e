"""Thicket: compile directory trees into route trees.

Folders become URL segments: ``blog`` is static, ``[slug]`` is dynamic,
``[...slug]`` catches the rest of the path, ``[[...slug]]`` catches zero
or more segments, and ``(group)`` organizes layouts without showing up
in the URL.

Basic usage::

    from thicket import FilesystemSource, build_tree

    tree = build_tree(FilesystemSource("app"))
    result = tree.match("/blog/hello-world")
    if result:
        result.params        # {"slug": "hello-world"}
        result.layout_chain  # root layout first

Hot reload::

    from thicket import RouteTable

    table = RouteTable(FilesystemSource("app"))
    table.rebuild()          # new snapshot, old readers unaffected

Pre-rendering::

    from thicket import enumerate_static_paths

    paths = await enumerate_static_paths(tree, "/blog/[slug]", {"slug": list_slugs})
"""

__version__ = "0.1.0"
__all__ = [
    "BuildError",
    "ConfigurationError",
    "Conflict",
    "ConflictKind",
    "FilesystemSource",
    "HandlerKind",
    "HandlerRecord",
    "ManifestSource",
    "MethodNotAllowed",
    "NotFound",
    "RouteMatch",
    "RouteNode",
    "RouteSource",
    "RouteTable",
    "RouteTree",
    "SegmentDescriptor",
    "SegmentKind",
    "SegmentSyntaxError",
    "StaticPathSet",
    "ThicketConfig",
    "ThicketError",
    "TreeBuilder",
    "build_tree",
    "compose_layout_chain",
    "enumerate_all",
    "enumerate_static_paths",
    "match_path",
    "nearest_boundary",
    "parse_segment",
]

# name -> module that defines it
_LAZY_IMPORTS: dict[str, str] = {
    "BuildError": "thicket.errors",
    "ConfigurationError": "thicket.errors",
    "Conflict": "thicket.errors",
    "ConflictKind": "thicket.errors",
    "MethodNotAllowed": "thicket.errors",
    "SegmentSyntaxError": "thicket.errors",
    "ThicketError": "thicket.errors",
    "ThicketConfig": "thicket.config",
    "FilesystemSource": "thicket.sources",
    "ManifestSource": "thicket.sources",
    "RouteSource": "thicket.sources",
    "RouteTable": "thicket.table",
    "HandlerKind": "thicket.routing.route",
    "HandlerRecord": "thicket.routing.route",
    "NotFound": "thicket.routing.route",
    "RouteMatch": "thicket.routing.route",
    "StaticPathSet": "thicket.routing.route",
    "SegmentDescriptor": "thicket.routing.segments",
    "SegmentKind": "thicket.routing.segments",
    "parse_segment": "thicket.routing.segments",
    "RouteNode": "thicket.routing.tree",
    "RouteTree": "thicket.routing.tree",
    "TreeBuilder": "thicket.routing.builder",
    "build_tree": "thicket.routing.builder",
    "match_path": "thicket.routing.matcher",
    "compose_layout_chain": "thicket.routing.layouts",
    "nearest_boundary": "thicket.routing.layouts",
    "enumerate_all": "thicket.routing.enumerate",
    "enumerate_static_paths": "thicket.routing.enumerate",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import thicket`` fast while providing a clean top-level API.
    """
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_path), name)
