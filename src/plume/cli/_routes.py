"""``plume routes``: list pages, their data functions and explicit routes."""

import argparse
import sys

from plume.cli._resolve import load_site


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of TEMPLATE, FUNCTION and whether it is registered."""
    site = load_site(args.site)
    try:
        templates = site.registry().list_templates()
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    rows = [
        (
            template.path,
            template.data_function_name,
            "yes" if template.data_function_name in site.functions else "MISSING",
        )
        for template in templates
    ]
    if rows:
        width_path = max(max(len(r[0]) for r in rows), len("TEMPLATE"))
        width_fn = max(max(len(r[1]) for r in rows), len("FUNCTION"))
        fmt = f"{{:<{width_path}}}  {{:<{width_fn}}}  {{}}"
        print(fmt.format("TEMPLATE", "FUNCTION", "REGISTERED"))
        print("-" * min(width_path + width_fn + 14, 80))
        for row in rows:
            print(fmt.format(*row))
    else:
        print("No page templates found.")

    if site.routes:
        print()
        print("Explicit routes (in match order):")
        for index, route in enumerate(site.routes, 1):
            label = route.name or getattr(route.match, "__name__", repr(route.match))
            print(f"  {index}. {label}")
