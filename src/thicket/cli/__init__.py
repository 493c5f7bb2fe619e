"""Thicket CLI: inspect, validate, and try out a route directory.

Entry point registered as ``thicket`` in ``pyproject.toml``::

    [project.scripts]
    thicket = "thicket.cli:main"
"""

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``thicket`` command."""
    parser = argparse.ArgumentParser(
        prog="thicket",
        description="Thicket: compile directory trees into route trees.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: warning)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- thicket routes ---------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List every route in an app directory")
    routes_parser.add_argument("directory", help="App directory to scan")
    routes_parser.add_argument(
        "--load",
        action="store_true",
        help="Import handler files (needed to list API methods)",
    )

    # -- thicket check ----------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Report every route conflict")
    check_parser.add_argument("directory", help="App directory to scan")

    # -- thicket match ----------------------------------------------------
    match_parser = subparsers.add_parser("match", help="Resolve one request path")
    match_parser.add_argument("directory", help="App directory to scan")
    match_parser.add_argument("path", help="Request path (e.g. /blog/hello)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from thicket.config import ThicketConfig

    log_level = args.log_level or ThicketConfig().log_level
    logging.basicConfig(
        level=log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "routes":
        from thicket.cli._routes import run_routes

        run_routes(args)
    elif args.command == "check":
        from thicket.cli._check import run_check

        run_check(args)
    elif args.command == "match":
        from thicket.cli._match import run_match

        run_match(args)
