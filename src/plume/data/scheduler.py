"""Data acquisition scheduler.

Runs {selected languages} x {common + custom + per-template data functions}
under one bounded task pool, validates each result and persists it as JSON
records for the renderer.

Clearing policy:

- no filters: the whole data tree is removed first (full rebuild)
- language filter only: each selected language's subtree is removed
- any function filter: nothing is removed (targeted, additive run)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from plume._internal.invoke import invoke
from plume._internal.merge import deep_merge
from plume._internal.pool import TaskPool
from plume._internal.types import Task
from plume.data.validate import bracket_field, check_data
from plume.errors import MissingFunctionError, ValidationError
from plume.templates.registry import COMMON_FUNCTION

if TYPE_CHECKING:
    from plume.config import CustomData, SiteConfig
    from plume.data.functions import DataFunctions
    from plume.data.store import RecordStore
    from plume.templates.registry import TemplateFile, TemplateRegistry

logger = logging.getLogger("plume.data")


@dataclass(frozen=True, slots=True)
class FetchReport:
    """Summary of a completed fetch run."""

    languages: tuple[str, ...]
    tasks: int
    elapsed: float
    cleared: str  # "all", "languages" or "none"


def parse_filter(value: str | Iterable[str] | None) -> frozenset[str]:
    """Turn ``"a,b"`` or an iterable of names into a set; blanks dropped."""
    if value is None:
        return frozenset()
    items = value.split(",") if isinstance(value, str) else value
    return frozenset(item.strip() for item in items if item and item.strip())


def with_language_data(config: SiteConfig, language: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """Merge the configured translations for *language* into common data's ``lang`` key."""
    return deep_merge(data, {"lang": deep_merge(data.get("lang"), config.language_data.get(language))})


class DataScheduler:
    """Invokes data functions per language and persists their results.

    Built with everything it needs; nothing is imported or looked up by
    constructed name at run time::

        scheduler = DataScheduler(config, registry, functions, store)
        await scheduler.fetch(languages={"fr"})
    """

    __slots__ = ("_config", "_functions", "_registry", "_store")

    def __init__(
        self,
        config: SiteConfig,
        registry: TemplateRegistry,
        functions: DataFunctions,
        store: RecordStore,
    ) -> None:
        self._config = config
        self._registry = registry
        self._functions = functions
        self._store = store

    async def fetch(
        self,
        function_names: str | Iterable[str] | None = None,
        languages: str | Iterable[str] | None = None,
    ) -> FetchReport:
        """Run the selected data functions and write their records.

        Args:
            function_names: Only run these functions. Never clears.
            languages: Only run for these languages.

        Raises:
            MissingFunctionError: A template, custom entry or filter names a
                function that is not registered. Raised before any task runs.
            ValidationError: A function returned data of the wrong shape.
        """
        started = time.monotonic()
        fn_filter = parse_filter(function_names)
        lang_filter = parse_filter(languages)

        for name in sorted(fn_filter):
            if name not in self._functions:
                raise MissingFunctionError(name)

        selected = tuple(
            lang for lang in self._config.languages if not lang_filter or lang in lang_filter
        )
        templates = self._registry.list_templates()
        self._check_registered(templates)

        cleared = "none"
        if not fn_filter and not lang_filter:
            logger.info("Clearing data directory %s", self._store.root)
            await self._store.clear()
            cleared = "all"
        elif lang_filter and not fn_filter:
            for language in selected:
                logger.info("Clearing data for language %s", language)
                await self._store.clear_language(language)
            cleared = "languages"

        init = self._functions.init
        if init is not None:
            logger.info("Running init hook")
            init_started = time.monotonic()
            await invoke(init)
            logger.info("Init hook finished in %.2fs", time.monotonic() - init_started)

        def wanted(name: str) -> bool:
            return not fn_filter or name in fn_filter

        tasks: list[Task] = []
        for language in selected:
            if self._functions.has_common and wanted(COMMON_FUNCTION):
                tasks.append(self._common_task(language))

            for entry in self._config.custom_data:
                if entry.languages and language not in entry.languages:
                    continue
                if wanted(entry.function):
                    tasks.append(self._custom_task(language, entry))

            for template in templates:
                if wanted(template.data_function_name):
                    tasks.append(self._template_task(language, template))

        count = await TaskPool(self._config.fetch_concurrency).run(tasks)
        elapsed = time.monotonic() - started
        logger.info("Fetched %d data sets for %s in %.2fs", count, ", ".join(selected), elapsed)
        return FetchReport(languages=selected, tasks=count, elapsed=elapsed, cleared=cleared)

    def _check_registered(self, templates: Iterable[TemplateFile]) -> None:
        for entry in self._config.custom_data:
            if entry.function not in self._functions:
                raise MissingFunctionError(
                    entry.function,
                    f"Data function {entry.function!r} for custom data "
                    f"{entry.output_path!r} is not registered",
                )
        for template in templates:
            name = template.data_function_name
            if name not in self._functions:
                raise MissingFunctionError(
                    name, f"Data function {name!r} for template {template.path!r} is not registered"
                )

    async def fetch_common(self, language: str) -> dict[str, Any]:
        """Run ``get_common_data`` for one language and persist the result.

        Raises:
            MissingFunctionError: If ``get_common_data`` is not registered.
            ValidationError: If it does not return a dict.
        """
        data = await invoke(self._functions.get(COMMON_FUNCTION), language)
        if not isinstance(data, Mapping):
            detail = f"expected a dict, got {type(data).__name__}: {data!r}"
            raise ValidationError(language, COMMON_FUNCTION, detail)
        merged = with_language_data(self._config, language, data)
        await self._store.write_common(language, merged)
        return merged

    # -- Tasks --

    def _common_task(self, language: str) -> Task:
        async def task() -> None:
            logger.info("%s %s: fetching", language, COMMON_FUNCTION)
            await self.fetch_common(language)

        return task

    def _custom_task(self, language: str, entry: CustomData) -> Task:
        async def task() -> None:
            logger.info("%s %s: fetching", language, entry.function)
            data = await invoke(self._functions.get(entry.function), language)
            check_data(data, language, entry.function)
            await self._write_custom(language, entry, data)

        return task

    def _template_task(self, language: str, template: TemplateFile) -> Task:
        name = template.data_function_name

        async def task() -> None:
            logger.info("%s %s: fetching", language, name)
            data = await invoke(self._functions.get(name), language)
            check_data(data, language, name)
            await self._write_template(language, template, data)

        return task

    # -- Placement --

    async def _write_custom(self, language: str, entry: CustomData, data: Any) -> None:
        output = entry.output_path.replace("\\", "/").strip("/")
        directory, _, filename = output.rpartition("/")
        stem = filename.rsplit(".", 1)[0] if "." in filename else filename
        field_name = bracket_field(stem)

        if not isinstance(data, list) or field_name is None:
            await self._store.write(language, output, data)
            return

        for index, item in enumerate(data):
            value = item.get(field_name)
            if not value:
                detail = (
                    f"records are named by the {field_name!r} field but element "
                    f"{index} has no value for it"
                )
                raise ValidationError(language, entry.function, detail)

        async def write_item(item: Mapping[str, Any]) -> None:
            name = filename.replace(stem, str(item[field_name]), 1)
            await self._store.write(language, f"{directory}/{name}" if directory else name, item)

        await TaskPool(self._config.write_concurrency).run(
            [_bind(write_item, item) for item in data]
        )

    async def _write_template(self, language: str, template: TemplateFile, data: Any) -> None:
        directory, _, stem = template.stem_path.rpartition("/")
        prefix = f"{directory}/" if directory else ""

        if isinstance(data, Mapping):
            record = {**data, "_template": template.path}
            if record.get("page_name"):
                target = prefix + str(record["page_name"])
            else:
                target = template.stem_path
            await self._store.write(language, target, record)
            return

        async def write_item(index: int, item: Mapping[str, Any]) -> None:
            record = {**item, "_template": template.path}
            if record.get("page_name"):
                target = prefix + str(record["page_name"])
            else:
                logger.warning(
                    "%s %s: element %d has no page_name, using index", language,
                    template.data_function_name, index,
                )
                target = f"{template.stem_path}_{index + 1}"
            await self._store.write(language, target, record)

        await TaskPool(self._config.write_concurrency).run(
            [_bind(write_item, index, item) for index, item in enumerate(data)]
        )


def _bind(func: Any, *args: Any) -> Task:
    async def task() -> None:
        await func(*args)

    return task
