"""Plume CLI: data fetching, compilation, builds and the dev server.

Entry point registered as ``plume`` in ``pyproject.toml``::

    [project.scripts]
    plume = "plume.cli:main"

With no subcommand, ``PLUME_COMMAND`` from the environment picks one, so
``PLUME_COMMAND=build plume mysite`` equals ``plume build mysite``.
"""

import argparse
import os
import sys

COMMANDS = ("scaffold", "fetch", "compile", "build", "dev", "routes")


def _with_env_command(argv: list[str]) -> list[str]:
    command = os.environ.get("PLUME_COMMAND", "").strip()
    if not command or (argv and (argv[0] in COMMANDS or argv[0].startswith("-"))):
        return argv
    return [command, *argv]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plume",
        description="Plume: multi-language static sites from templates and data functions.",
    )
    subparsers = parser.add_subparsers(dest="command")
    site_help = "Import string of the site (e.g. mysite:site)"

    # -- plume scaffold ---------------------------------------------------
    scaffold_parser = subparsers.add_parser(
        "scaffold", help="Append missing data function stubs"
    )
    scaffold_parser.add_argument("site", help=site_help)
    scaffold_parser.add_argument("--module", default=None, help="Data module file to extend")

    # -- plume fetch ------------------------------------------------------
    fetch_parser = subparsers.add_parser("fetch", help="Run data functions, write records")
    fetch_parser.add_argument("site", help=site_help)
    fetch_parser.add_argument(
        "filters", nargs="*", help="f=fn1,fn2 (functions) and/or c=en,fr (languages)"
    )
    fetch_parser.add_argument("-f", "--functions", default=None, help="Comma-separated functions")
    fetch_parser.add_argument("-c", "--languages", default=None, help="Comma-separated languages")

    # -- plume compile ----------------------------------------------------
    compile_parser = subparsers.add_parser("compile", help="Compile templates into the bundle")
    compile_parser.add_argument("site", help=site_help)
    compile_parser.add_argument("--template", default=None, help="Only compile this template")

    # -- plume build ------------------------------------------------------
    build_cmd_parser = subparsers.add_parser("build", help="Build the static site")
    build_cmd_parser.add_argument("site", help=site_help)
    build_cmd_parser.add_argument(
        "--functions",
        action="store_true",
        help="Build the deployable function bundle instead of static HTML",
    )

    # -- plume dev --------------------------------------------------------
    dev_parser = subparsers.add_parser("dev", help="Start the development server")
    dev_parser.add_argument("site", help=site_help)
    dev_parser.add_argument("--host", default=None, help="Bind host address")
    dev_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    # -- plume routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List pages and routes")
    routes_parser.add_argument("site", help=site_help)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``plume`` command."""
    parser = build_parser()
    args = parser.parse_args(_with_env_command(list(sys.argv[1:] if argv is None else argv)))

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "scaffold":
        from plume.cli._scaffold import run_scaffold

        run_scaffold(args)
    elif args.command == "fetch":
        from plume.cli._fetch import run_fetch

        run_fetch(args)
    elif args.command == "compile":
        from plume.cli._compile import run_compile

        run_compile(args)
    elif args.command == "build":
        from plume.cli._build import run_build

        run_build(args)
    elif args.command == "dev":
        from plume.cli._dev import run_dev

        run_dev(args)
    elif args.command == "routes":
        from plume.cli._routes import run_routes

        run_routes(args)
