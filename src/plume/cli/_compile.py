"""``plume compile``: compile page templates into the bundle."""

import argparse
import sys

import anyio

from plume.cli._resolve import load_site
from plume.errors import PlumeError


def run_compile(args: argparse.Namespace) -> None:
    """Compile every page template, or just ``--template``."""
    site = load_site(args.site)
    try:
        bundle = anyio.run(site.compile, args.template)
    except (PlumeError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"Compiled {len(bundle.exports)} template(s) into {bundle.path}")
