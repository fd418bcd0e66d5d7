"""``plume build``: static site, or the function bundle with ``--functions``."""

import argparse
import functools
import sys

import anyio

from plume.cli._resolve import load_site
from plume.errors import PlumeError


def run_build(args: argparse.Namespace) -> None:
    site = load_site(args.site)
    try:
        report = anyio.run(functools.partial(site.build, functions=args.functions))
    except (PlumeError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"Built {report.pages} page(s) into {report.output} in {report.elapsed:.2f}s")
