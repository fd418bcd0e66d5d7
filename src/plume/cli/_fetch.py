"""``plume fetch``: run data functions and persist their records.

Filters can be given as flags or as ``key=value`` tokens::

    plume fetch mysite f=get_home_data,get_blog_data c=en,fr
    plume fetch mysite --functions get_home_data --languages fr
"""

import argparse
import sys

import anyio

from plume.cli._resolve import load_site
from plume.errors import PlumeError

_TOKEN_KEYS = {"f": "functions", "c": "languages"}


def parse_tokens(tokens: list[str]) -> dict[str, str]:
    """Turn ``["f=a,b", "c=en"]`` into ``{"functions": "a,b", "languages": "en"}``.

    Raises:
        ValueError: On a token that is not ``f=…`` or ``c=…``.
    """
    parsed: dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if not sep or key not in _TOKEN_KEYS:
            msg = f"Unknown filter {token!r}; expected f=<functions> or c=<languages>"
            raise ValueError(msg)
        parsed[_TOKEN_KEYS[key]] = value
    return parsed


def run_fetch(args: argparse.Namespace) -> None:
    """Fetch data for the selected functions and languages."""
    try:
        tokens = parse_tokens(args.filters)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    functions = args.functions or tokens.get("functions")
    languages = args.languages or tokens.get("languages")

    site = load_site(args.site)
    try:
        report = anyio.run(site.fetch, functions, languages)
    except (PlumeError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(
        f"Fetched {report.tasks} data set(s) for {', '.join(report.languages)} "
        f"in {report.elapsed:.2f}s"
    )
