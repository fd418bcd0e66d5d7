"""Static site build.

Renders every persisted record to ``<static_output>/<language>/<path>.html``:

1. Clear the output directory, copy ``public/`` and ``template/static``
2. Compile the page bundle and load its render functions
3. Run the ``init`` hook
4. Per language (one at a time): render custom pages, then walk the
   records and render each through the template named by its ``_template``

Templates used by a custom page are skipped by the record walk.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio
import minify_html

from plume._internal.invoke import invoke
from plume._internal.pool import TaskPool
from plume.compiler.bundle import load_bundle
from plume.data.functions import accepts_data_lookup
from plume.data.validate import bracket_field, check_data
from plume.errors import ValidationError
from plume.rendering import PageRenderer
from plume.templates.registry import normalize_path

if TYPE_CHECKING:
    from plume._internal.types import Task
    from plume.compiler.bundle import BundleCompiler
    from plume.config import CustomPage, SiteConfig
    from plume.data.functions import DataFunctions
    from plume.data.store import RecordStore
    from plume.routing.resolver import Resolver
    from plume.templates.registry import TemplateRegistry

logger = logging.getLogger("plume.build")


@dataclass(frozen=True, slots=True)
class BuildReport:
    """Summary of a finished build."""

    output: Path
    languages: tuple[str, ...]
    pages: int
    elapsed: float


def minify_page(html: str) -> str:
    """Compress *html*, or return it unchanged with a warning if that fails."""
    try:
        return minify_html.minify(html, minify_css=True)
    except Exception as exc:
        logger.warning("HTML minification failed, page written as is: %s", exc)
        return html


async def copy_assets(config: SiteConfig, target: Path) -> None:
    """Copy ``public/`` into *target* and ``template/static`` into ``target/static``.

    With ``config.static_dirs`` set only those static subdirectories ship.
    """

    def copy() -> None:
        target.mkdir(parents=True, exist_ok=True)
        if config.public_path.is_dir():
            shutil.copytree(config.public_path, target, dirs_exist_ok=True)
        static = config.static_dir
        if not static.is_dir():
            return
        static_target = target / "static"
        if not config.static_dirs:
            shutil.copytree(static, static_target, dirs_exist_ok=True)
            return
        static_target.mkdir(parents=True, exist_ok=True)
        for name in config.static_dirs:
            source = static / normalize_path(name)
            if source.is_dir():
                shutil.copytree(source, static_target / normalize_path(name), dirs_exist_ok=True)
            elif source.is_file():
                (static_target / normalize_path(name)).parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, static_target / normalize_path(name))
            else:
                logger.warning("Static directory %s does not exist, skipped", source)

    await anyio.to_thread.run_sync(copy)


def html_path_for(record_path: str) -> str:
    """``blog/a.json`` -> ``blog/a.html``."""
    stem = normalize_path(record_path)
    if stem.endswith(".json"):
        stem = stem[: -len(".json")]
    return f"{stem}.html"


class StaticBuilder:
    """Builds the static site for every configured language.

    Args:
        config: Site configuration.
        registry: Template registry.
        functions: Registered data functions (custom pages, init hook).
        store: Record store produced by a previous fetch.
        compiler: Bundle compiler.
        resolver: Resolver used to pick each record's template variant.
    """

    __slots__ = ("_compiler", "_config", "_functions", "_registry", "_resolver", "_store")

    def __init__(
        self,
        config: SiteConfig,
        registry: TemplateRegistry,
        functions: DataFunctions,
        store: RecordStore,
        compiler: BundleCompiler,
        resolver: Resolver,
    ) -> None:
        self._config = config
        self._registry = registry
        self._functions = functions
        self._store = store
        self._compiler = compiler
        self._resolver = resolver

    async def build(self) -> BuildReport:
        """Run a full static build.

        Raises:
            CompileError: The bundle failed to compile.
            MissingFunctionError: A custom page names an unregistered function.
            ValidationError: A custom page's data has the wrong shape.
            ResolutionError: A record names a template that no longer exists.
        """
        started = time.monotonic()
        output = self._config.static_output_path
        logger.info("Building static site into %s", output)

        await anyio.to_thread.run_sync(shutil.rmtree, output, True)
        await copy_assets(self._config, output)

        bundle = await self._compiler.compile_all()
        renderer = PageRenderer(
            self._config, self._registry, self._store, load_bundle(bundle.path)
        )

        init = self._functions.init
        if init is not None:
            logger.info("Running init hook")
            await invoke(init)

        pages = 0
        for language in self._config.languages:
            logger.info("Building language %s", language)
            common = await renderer.common_for(language)
            handled: set[str] = set()
            pages += await self._custom_pages(renderer, language, common, handled)
            pages += await self._record_pages(renderer, language, common, handled)

        elapsed = time.monotonic() - started
        logger.info("Built %d page(s) in %.2fs", pages, elapsed)
        return BuildReport(
            output=output, languages=tuple(self._config.languages), pages=pages, elapsed=elapsed
        )

    async def _write(self, relative: str, html: str) -> None:
        target = anyio.Path(self._config.static_output_path / relative)
        if self._config.minify_html:
            html = minify_page(html)
        await target.parent.mkdir(parents=True, exist_ok=True)
        await target.write_text(html, encoding="utf-8")
        logger.debug("Wrote %s", target)

    # -- Custom pages --

    async def _custom_pages(
        self,
        renderer: PageRenderer,
        language: str,
        common: Mapping[str, Any],
        handled: set[str],
    ) -> int:
        tasks: list[Task] = []
        for page in self._config.custom_pages:
            if page.languages and language not in page.languages:
                continue
            handled.add(normalize_path(page.template))
            tasks.extend(await self._custom_page_tasks(renderer, language, common, page))
        return await TaskPool(self._config.write_concurrency).run(tasks)

    async def _custom_page_tasks(
        self,
        renderer: PageRenderer,
        language: str,
        common: Mapping[str, Any],
        page: CustomPage,
    ) -> list[Task]:
        func = self._functions.get(page.function)
        if accepts_data_lookup(func):
            data = await invoke(func, language, data_lookup=self._store.lookup(language))
        else:
            data = await invoke(func, language)
        check_data(data, language, page.function)
        template = normalize_path(page.template)
        output = normalize_path(page.output_path)
        directory, _, filename = output.rpartition("/")
        stem = filename.rsplit(".", 1)[0] if "." in filename else filename
        field_name = bracket_field(stem)

        def render_to(relative: str, item: Any) -> Task:
            async def task() -> None:
                html = renderer.render(template, item, common)
                await self._write(f"{language}/{relative}", html)

            return task

        if not isinstance(data, list) or field_name is None:
            return [render_to(output, data)]

        tasks: list[Task] = []
        for index, item in enumerate(data):
            value = item.get(field_name)
            if not value:
                detail = (
                    f"pages are named by the {field_name!r} field but element "
                    f"{index} has no value for it"
                )
                raise ValidationError(language, page.function, detail)
            name = filename.replace(stem, str(value), 1)
            tasks.append(render_to(f"{directory}/{name}" if directory else name, item))
        return tasks

    # -- Records --

    async def _record_pages(
        self,
        renderer: PageRenderer,
        language: str,
        common: Mapping[str, Any],
        handled: set[str],
    ) -> int:
        rendered: list[str] = []
        await TaskPool(self._config.write_concurrency).run(
            self._record_task(renderer, language, common, handled, record_path, rendered)
            for record_path in self._store.list_records(language)
        )
        return len(rendered)

    def _record_task(
        self,
        renderer: PageRenderer,
        language: str,
        common: Mapping[str, Any],
        handled: set[str],
        record_path: str,
        rendered: list[str],
    ) -> Task:
        async def task() -> None:
            record = await self._store.read(language, record_path)
            if not isinstance(record, Mapping) or not record.get("_template"):
                return
            template = normalize_path(str(record["_template"]))
            if template in handled:
                return
            resolution = self._resolver.resolve_record(record, language)
            html = renderer.render(resolution.require_template(), record, common, template)
            relative = f"{language}/{html_path_for(record_path)}"
            await self._write(relative, html)
            rendered.append(relative)

        return task

