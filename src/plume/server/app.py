"""Development ASGI application.

Every GET is resolved the same way a static build would resolve it, then
rendered live from the template files. ``/static/…`` and public files are
served straight from disk. A missing template is answered with a visible
"template not found" page, never an exception.
"""

from __future__ import annotations

import html
import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio
from kida import TemplateError

from plume._internal.asgi import Receive, Scope, Send, header
from plume._internal.merge import deep_merge
from plume.errors import ResolutionError
from plume.rendering import not_found_page

if TYPE_CHECKING:
    from plume.config import SiteConfig
    from plume.data.scheduler import DataScheduler
    from plume.rendering import PageRenderer
    from plume.routing.resolver import Resolver

logger = logging.getLogger("plume.server")

_HTML = "text/html; charset=utf-8"


async def _send(
    send: Send, status: int, body: bytes, content_type: str, *, head: bool = False
) -> None:
    """Send a complete response. HEAD keeps the headers and drops the body."""
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [
                (b"content-type", content_type.encode("latin-1")),
                (b"content-length", str(len(body)).encode("latin-1")),
            ],
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else body})


async def _lifespan(receive: Receive, send: Send) -> None:
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


class DevApp:
    """ASGI callable serving the site in development.

    Args:
        config: Site configuration.
        resolver: Request resolver.
        renderer: Live page renderer.
        scheduler: Used to re-run ``get_common_data`` per request when
            ``config.refresh_common`` is set.
    """

    __slots__ = ("_config", "_renderer", "_resolver", "_scheduler")

    def __init__(
        self,
        config: SiteConfig,
        resolver: Resolver,
        renderer: PageRenderer,
        scheduler: DataScheduler | None = None,
    ) -> None:
        self._config = config
        self._resolver = resolver
        self._renderer = renderer
        self._scheduler = scheduler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _lifespan(receive, send)
            return
        if scope["type"] != "http":
            return
        if scope["method"] not in ("GET", "HEAD"):
            await _send(send, 405, b"Method Not Allowed", "text/plain; charset=utf-8")
            return

        head = scope["method"] == "HEAD"
        path = scope["path"]
        asset = self._asset_for(path)
        if asset is not None:
            body = await anyio.Path(asset).read_bytes()
            content_type = mimetypes.guess_type(asset.name)[0] or "application/octet-stream"
            await _send(send, 200, body, content_type, head=head)
            return

        query = scope.get("query_string", b"").decode("latin-1")
        url = f"{path}?{query}" if query else path
        status, page = await self.render_page(url, header(scope, b"user-agent"))
        await _send(send, status, page.encode("utf-8"), _HTML, head=head)

    def _asset_for(self, path: str) -> Path | None:
        relative = path.lstrip("/")
        if not relative:
            return None
        if relative.startswith("static/"):
            root = self._config.static_dir
            relative = relative.removeprefix("static/")
        else:
            root = self._config.public_path
        candidate = (root / relative).resolve()
        if candidate.is_file() and candidate.is_relative_to(root.resolve()):
            return candidate
        return None

    async def render_page(self, url: str, user_agent: str | None = None) -> tuple[int, str]:
        """Resolve and render *url*, returning ``(status, html)``."""
        language = self._config.default_language
        resolution = await self._resolver.resolve(url, language, user_agent)
        try:
            template = resolution.require_template()
        except ResolutionError as exc:
            logger.warning("%s (request %s)", exc, url)
            return 404, not_found_page(resolution.template_path)

        logger.info(
            "%s -> %s (%s, data: %s)", url, template, resolution.source,
            resolution.record_path or resolution.route_name or "none",
        )
        common = await self._common(language)
        try:
            return 200, self._renderer.render(template, resolution.data, common)
        except ResolutionError as exc:
            logger.warning("%s (request %s)", exc, url)
            return 404, not_found_page(template)
        except TemplateError as exc:
            logger.exception("Rendering %s failed", template)
            return 500, f"<pre>{html.escape(str(exc))}</pre>\n"

    async def _common(self, language: str) -> dict[str, Any]:
        if self._config.refresh_common and self._scheduler is not None:
            return deep_merge(
                await self._scheduler.fetch_common(language), self._config.common_data
            )
        return await self._renderer.common_for(language)
