"""``thicket match``: resolve one request path against an app directory.

Prints the matched pattern, the extracted parameters, and the layout
chain root-first.  Exits with code 1 when the path matches nothing,
after naming the nearest not-found boundary if there is one.
"""

import argparse
import sys

from thicket.cli._resolve import resolve_tree
from thicket.routing.layouts import nearest_boundary
from thicket.routing.route import HandlerKind, HandlerRecord


def _label(record: HandlerRecord) -> str:
    return record.source or str(record.target)


def run_match(args: argparse.Namespace) -> None:
    """Match ``args.path`` against the tree built from ``args.directory``."""
    tree = resolve_tree(args.directory)
    result = tree.match(args.path)

    if not result:
        print(f"No route matches {result.url}", file=sys.stderr)
        boundary = nearest_boundary(result, HandlerKind.NOT_FOUND)
        if boundary is not None:
            print(f"not-found boundary: {_label(boundary)}", file=sys.stderr)
        raise SystemExit(1)

    print(f"pattern: {result.pattern}")
    print(f"handler: {_label(result.handler)}")
    if result.params:
        print("params:")
        for name, value in result.params.items():
            shown = list(value) if isinstance(value, tuple) else value
            print(f"  {name} = {shown!r}")
    else:
        print("params: (none)")
    if result.layout_chain:
        print("layouts:")
        for record in result.layout_chain:
            print(f"  {_label(record)}")
    else:
        print("layouts: (none)")
