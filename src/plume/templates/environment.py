"""Kida environment setup.

Creates a kida Environment from plume's SiteConfig. Template names are
relative to the template root, so pages are addressed as
``pages/<path>`` and layouts as ``layouts/base.html``.
"""

import json
from collections.abc import Callable, Mapping
from typing import Any

from kida import Environment, FileSystemLoader, Markup

from plume.config import SiteConfig


def _to_json(value: Any) -> Markup:
    return Markup(json.dumps(value, ensure_ascii=False))


BUILTIN_FILTERS: dict[str, Callable[..., Any]] = {
    "to_json": _to_json,
}


def create_environment(
    config: SiteConfig,
    filters: Mapping[str, Callable[..., Any]] | None = None,
) -> Environment:
    """Create a kida Environment rooted at ``config.template_root``.

    Used for direct rendering by the dev server. The bundle runtime builds
    its own environment from embedded sources.
    """
    env = Environment(
        loader=FileSystemLoader(str(config.template_root)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )
    env.update_filters(BUILTIN_FILTERS)
    if filters:
        env.update_filters(dict(filters))
    return env


def page_template_name(config: SiteConfig, path: str) -> str:
    """Kida template name for a pages-relative template path."""
    return f"{config.pages_subdir}/{path}"
