"""``swbundle build`` — compile one scope's bundle to stdout or a file.

Runs the same registration and compile phases as a request, with no
request object handed to the identity provider.
"""

import argparse
import logging
import sys
from pathlib import Path

from swbundle.cli._resolve import resolve_app
from swbundle.errors import SWBundleError
from swbundle.scope import parse_scope
from swbundle.server.conditional import banner_for


def run_build(args: argparse.Namespace) -> None:
    """Compile ``args.app`` for ``args.scope`` and write the result.

    Exits with 2 for an unusable scope, 1 when the app cannot be loaded
    or compiled, and 1 under ``--strict`` when diagnostics were produced.
    """
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    scope = parse_scope(args.scope)
    if scope is None:
        print(f"Error: scope must be front or admin, got {args.scope!r}", file=sys.stderr)
        raise SystemExit(2)

    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        bundle = app.compile(scope)
    except SWBundleError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    text = banner_for(app.config.version) + bundle.text
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Wrote {scope.name.lower()} bundle to {args.output} (etag {bundle.fingerprint})")
    else:
        sys.stdout.write(text)

    for diagnostic in bundle.diagnostics:
        print(f"warning: [{diagnostic.code}] {diagnostic.message}", file=sys.stderr)

    if args.strict and bundle.diagnostics:
        raise SystemExit(1)
