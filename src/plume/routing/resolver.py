"""Two-tier page resolution.

Pairs a request path with a template and its data. Used the same way by
the dev server and the static builder.

Resolution order:

1. **Explicit routes**: the first ``RouteDefinition`` whose ``match`` is
   true supplies the template id and data.
2. **Convention**: ``/blog/a.html`` looks up the record ``blog/a.json``,
   ``/blog`` looks up ``blog/index.json``. A record's ``_template`` names the
   template; without a record the path itself is tried as a template with
   no data.

The chosen template is then narrowed to its most specific language/device
variant (``pages/fr/mobile/home.html`` over ``pages/home.html``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from plume._internal.invoke import invoke
from plume.errors import ResolutionError
from plume.routing.device import classify_device
from plume.routing.route import RequestContext, RouteDefinition
from plume.templates.registry import normalize_path

if TYPE_CHECKING:
    from plume.config import SiteConfig
    from plume.data.store import RecordStore
    from plume.templates.registry import TemplateRegistry

logger = logging.getLogger("plume.routing")

PAGE_SUFFIX = ".html"


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving one request.

    Attributes:
        template_path: Pages-relative template path chosen.
        data: Page data, or ``None`` when nothing supplied any.
        source: ``"route"``, ``"record"`` or ``"path"``.
        record_path: Record consulted by the convention tier, if any.
        route_name: Name of the matching route, if any.
        language: Language resolved for.
        device: Device class resolved for.
        exists: Whether ``template_path`` exists on disk.
    """

    template_path: str
    data: Any
    source: str
    language: str
    device: str
    record_path: str | None = None
    route_name: str | None = None
    exists: bool = True

    def require_template(self) -> str:
        """Return ``template_path`` or raise if the template is missing.

        Raises:
            ResolutionError: If the template does not exist.
        """
        if not self.exists:
            raise ResolutionError(self.template_path)
        return self.template_path


def record_path_for(request_path: str) -> str:
    """Derive the record lookup path from a request path.

    ``/a/b.html`` -> ``a/b``; ``/a/b`` -> ``a/b/index``; ``/`` -> ``index``.
    """
    path = request_path.split("?", 1)[0]
    if path.endswith(PAGE_SUFFIX):
        return normalize_path(path[: -len(PAGE_SUFFIX)])
    return normalize_path(f"{path.rstrip('/')}/index")


class Resolver:
    """Resolves request paths and data records to templates.

    Args:
        config: Site configuration.
        registry: Template registry (existence checks, id conversion).
        store: Record store for the convention tier and ``data_lookup``.
        routes: Explicit routes, in priority order.
    """

    __slots__ = ("_config", "_registry", "_routes", "_store")

    def __init__(
        self,
        config: SiteConfig,
        registry: TemplateRegistry,
        store: RecordStore,
        routes: Sequence[RouteDefinition] = (),
    ) -> None:
        self._config = config
        self._registry = registry
        self._store = store
        self._routes = tuple(routes)

    @property
    def routes(self) -> tuple[RouteDefinition, ...]:
        return self._routes

    def context_for(self, url: str, language: str, device: str) -> RequestContext:
        """Build the context handed to route callables."""
        if "://" not in url:
            url = "http://localhost/" + url.lstrip("/")
        return RequestContext(
            url=urlsplit(url),
            language=language,
            device=device,
            data_lookup=self._store.lookup(language),
        )

    async def match_route(self, ctx: RequestContext) -> tuple[RouteDefinition, str, Any] | None:
        """Return ``(route, template_path, data)`` for the first matching route."""
        for route in self._routes:
            if not await invoke(route.match, ctx):
                continue
            template_id = await invoke(route.get_template_id, ctx)
            data = await invoke(route.get_data, ctx)
            template_path = self._registry.to_path(str(template_id))
            logger.debug("Route %s matched %s -> %s", route.name or "?", ctx.path, template_path)
            return route, template_path, data
        return None

    async def resolve(
        self,
        url: str,
        language: str | None = None,
        user_agent: str | None = None,
        *,
        device: str | None = None,
    ) -> Resolution:
        """Resolve a request URL (path or absolute URL) to template and data.

        Never raises for a missing template: check ``Resolution.exists`` or
        call ``require_template()``.
        """
        language = language or self._config.default_language
        device = device or classify_device(user_agent)
        ctx = self.context_for(url, language, device)

        matched = await self.match_route(ctx)
        if matched is not None:
            route, template_path, data = matched
            return self._finish(
                template_path, data, "route", language, device, route_name=route.name
            )

        record_path = record_path_for(ctx.path)
        data = await self._store.find(language, record_path)
        if isinstance(data, Mapping) and data.get("_template"):
            return self._finish(
                str(data["_template"]), data, "record", language, device, record_path=record_path
            )

        if data is None:
            logger.debug("No record %s/%s.json, page data will be empty", language, record_path)
        return self._finish(
            record_path + self._registry.suffix, data, "path", language, device,
            record_path=record_path,
        )

    def resolve_record(
        self,
        record: Mapping[str, Any],
        language: str,
        device: str = "unknown",
    ) -> Resolution:
        """Resolve a persisted record to its template (static builds).

        Raises:
            ResolutionError: If the record carries no ``_template``.
        """
        template = record.get("_template")
        if not template:
            raise ResolutionError("<record without _template>")
        return self._finish(str(template), record, "record", language, device)

    def _finish(
        self,
        template_path: str,
        data: Any,
        source: str,
        language: str,
        device: str,
        *,
        record_path: str | None = None,
        route_name: str | None = None,
    ) -> Resolution:
        variant = self._registry.select_variant(template_path, language, device)
        return Resolution(
            template_path=variant or normalize_path(template_path),
            data=data,
            source=source,
            language=language,
            device=device,
            record_path=record_path,
            route_name=route_name,
            exists=variant is not None,
        )
