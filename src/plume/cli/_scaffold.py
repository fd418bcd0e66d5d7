"""``plume scaffold``: append missing data function stubs to the data module."""

import argparse
import sys

from plume.cli._resolve import load_site
from plume.scaffold import scaffold_data_module


def run_scaffold(args: argparse.Namespace) -> None:
    """Add a stub for every data function the site's templates expect.

    The data module is ``--module`` or, failing that, the module the site
    loaded with ``Site.load_data_module``.
    """
    site = load_site(args.site)
    path = args.module or site.data_module_path
    if path is None:
        print(
            "Error: no data module known; pass --module PATH or call "
            "site.load_data_module() in the site module",
            file=sys.stderr,
        )
        raise SystemExit(1)

    try:
        added = scaffold_data_module(path, site.registry())
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not added:
        print(f"{path}: nothing to add")
        return
    print(f"{path}: added {', '.join(added)}")
