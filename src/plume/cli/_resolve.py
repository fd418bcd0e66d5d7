"""Site import resolution: ``"module:attribute"`` strings to Site instances.

Shared by every ``plume`` command that needs the user's site object.
"""

import importlib
import logging
import os
import sys

from plume.site import Site


def resolve_site(import_string: str) -> Site:
    """Resolve an import string to a plume Site.

    Accepts ``"module:attribute"``; the attribute defaults to ``"site"``.
    A callable that is not a Site is treated as a factory and called.
    The current directory is importable, so ``plume fetch mysite`` works
    from the project root.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a Site.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "site"

    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, Site):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, Site):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a plume.Site instance"
        raise TypeError(msg)
    return obj


def load_site(import_string: str) -> Site:
    """Resolve the site and configure logging from its config.

    Exits with status 1 when the site cannot be resolved.
    """
    try:
        site = resolve_site(import_string)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    logging.basicConfig(
        level=site.config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return site
