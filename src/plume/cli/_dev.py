"""``plume dev``: serve the site with live template rendering."""

import argparse
import sys

from plume.cli._resolve import load_site


def run_dev(args: argparse.Namespace) -> None:
    site = load_site(args.site)
    try:
        site.run(host=args.host, port=args.port)
    except ModuleNotFoundError as exc:
        print(
            f"Error: {exc}. Install the server extra: pip install plume-site[server]",
            file=sys.stderr,
        )
        raise SystemExit(1) from exc
