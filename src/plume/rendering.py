"""Page rendering: render function, then the macro and scope passes.

One path for every caller. The static builder renders through the compiled
bundle; the dev server renders straight from the template files so edits
show up on the next request.
"""

from __future__ import annotations

import html
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from kida.environment.exceptions import TemplateNotFoundError

from plume._internal.merge import deep_merge
from plume.errors import ResolutionError
from plume.templates.environment import create_environment, page_template_name
from plume.templates.registry import to_identifier
from plume.transforms.macros import expand_macros
from plume.transforms.scope import ScopeIsolator

if TYPE_CHECKING:
    from kida import Environment

    from plume._internal.types import RenderFunction
    from plume.config import SiteConfig
    from plume.data.store import RecordStore
    from plume.templates.registry import TemplateRegistry


def not_found_page(template_path: str) -> str:
    """Visible placeholder for a page whose template does not exist."""
    return f"<h1>Template not found: {html.escape(template_path)}</h1>\n"


class PageRenderer:
    """Renders pages with their data and common data.

    Args:
        config: Site configuration (pass toggles, macro tag, scope prefix).
        registry: Template registry for path to identifier conversion.
        store: Record store holding ``_common.json`` per language.
        functions: Render functions loaded from a bundle, keyed by
            identifier. When omitted, templates are rendered live with kida.
    """

    __slots__ = ("_config", "_env", "_functions", "_isolator", "_registry", "_store")

    def __init__(
        self,
        config: SiteConfig,
        registry: TemplateRegistry,
        store: RecordStore,
        functions: Mapping[str, RenderFunction] | None = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._store = store
        self._functions = functions
        self._env: Environment | None = None
        self._isolator = ScopeIsolator(config.scope_prefix, config.scope_max_depth)

    @property
    def live(self) -> bool:
        """True when rendering from template files rather than a bundle."""
        return self._functions is None

    async def common_for(self, language: str) -> dict[str, Any]:
        """Persisted common data for *language* merged with ``config.common_data``."""
        return deep_merge(await self._store.read_common(language), self._config.common_data)

    def function_for(self, template_path: str) -> RenderFunction:
        """Render function for a pages-relative template path.

        Raises:
            ResolutionError: If no such template (or bundle export) exists.
        """
        if self._functions is not None:
            identifier = to_identifier(self._registry.to_canonical_id(template_path))
            try:
                return self._functions[identifier]
            except KeyError:
                raise ResolutionError(template_path) from None

        if self._env is None:
            self._env = create_environment(self._config)
        env = self._env
        name = page_template_name(self._config, template_path)

        def render(context: Mapping[str, Any]) -> str:
            try:
                template = env.get_template(name)
            except TemplateNotFoundError:
                raise ResolutionError(template_path) from None
            return template.render(dict(context))

        return render

    def render(
        self,
        template_path: str,
        data: Any,
        common: Mapping[str, Any],
        page_path: str | None = None,
    ) -> str:
        """Render one page and run the output passes over it.

        Raises:
            ResolutionError: If the template does not exist.
        """
        render = self.function_for(template_path)
        context = {
            "data": data,
            "common": common,
            "_page_path": page_path if page_path is not None else template_path,
        }
        return self.postprocess(render(context), data)

    def postprocess(self, text: str, data: Any) -> str:
        """Apply the enabled text passes to already rendered HTML."""
        if self._config.expand_macros:
            text = expand_macros(text, data if isinstance(data, Mapping) else None, self._config.macro_tag)
        if self._config.scope_isolation:
            text = self._isolator.rewrite(text)
        return text
