"""``thicket routes``: list the routes of an app directory.

Prints a table of KIND, PATTERN, and SOURCE for every page and API
route, in tree order.  Group placement is shown after the source when
the tree key differs from the URL pattern.
"""

import argparse

from thicket.cli._resolve import resolve_tree
from thicket.routing.route import HandlerKind


def run_routes(args: argparse.Namespace) -> None:
    """List routes for the directory at ``args.directory``."""
    tree = resolve_tree(args.directory, load_modules=args.load)
    routes = tree.routes()
    if not routes:
        print("No routes found.")
        return

    # Build rows: (kind, pattern, source)
    rows: list[tuple[str, str, str]] = []
    for node in routes:
        record = node.handlers.page or node.handlers.api
        if record is None:
            continue
        kind = "PAGE" if record.kind is HandlerKind.PAGE else "API"
        if record.methods:
            kind = f"{kind} {','.join(sorted(record.methods))}"
        source = record.source or str(record.target)
        if node.key != node.pattern:
            source = f"{source} ({node.key})"
        rows.append((kind, node.pattern, source))

    # Column widths
    max_kind = max(max(len(r[0]) for r in rows), 4)  # "KIND" header
    max_pattern = max(max(len(r[1]) for r in rows), 7)  # "PATTERN" header

    fmt = f"{{:<{max_kind}}}  {{:<{max_pattern}}}  {{}}"
    print(fmt.format("KIND", "PATTERN", "SOURCE"))
    sep_len = max_kind + max_pattern + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for kind, pattern, source in rows:
        print(fmt.format(kind, pattern, source))
