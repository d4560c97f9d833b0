"""swbundle CLI — compile a service worker bundle without a server.

Entry point registered as ``swbundle`` in ``pyproject.toml``::

    [project.scripts]
    swbundle = "swbundle.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``swbundle`` command."""
    parser = argparse.ArgumentParser(
        prog="swbundle",
        description="swbundle — compile service worker bundles from registered contributions.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- swbundle build ---------------------------------------------------
    build_parser = subparsers.add_parser("build", help="Compile the bundle for one scope")
    build_parser.add_argument(
        "app",
        help="Import string (e.g. mysite.sw:app)",
    )
    build_parser.add_argument(
        "--scope",
        default="front",
        help="front or admin (or 1 / 2)",
    )
    build_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the bundle to this file instead of stdout",
    )
    build_parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for compile diagnostics",
    )
    build_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any contribution was degraded",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "build":
        from swbundle.cli._build import run_build

        run_build(args)
