"""Function build: a deployable bundle for rendering on demand.

Produces ``<function_output>/page/`` holding the compiled bundle
(``pages.py``), public files, static assets and ``common.json``, which
maps each language to its common data (with translations merged in) plus
``langCommon`` for the site-wide ``common_data``.

The bundle is compiled standalone: with ``scope_isolation`` on, every page
it renders has already been through the scope-isolation pass.
"""

from __future__ import annotations

import json
import logging
import shutil
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import anyio

from plume._internal.invoke import invoke
from plume.build.static import BuildReport, copy_assets
from plume.data.scheduler import with_language_data
from plume.errors import ValidationError
from plume.templates.registry import COMMON_FUNCTION

if TYPE_CHECKING:
    from plume.compiler.bundle import BundleCompiler
    from plume.config import SiteConfig
    from plume.data.functions import DataFunctions

logger = logging.getLogger("plume.build")

BUNDLE_NAME = "pages.py"
COMMON_NAME = "common.json"


class FunctionBuilder:
    """Packages the page bundle with the data it needs at request time."""

    __slots__ = ("_compiler", "_config", "_functions")

    def __init__(
        self, config: SiteConfig, functions: DataFunctions, compiler: BundleCompiler
    ) -> None:
        self._config = config
        self._functions = functions
        self._compiler = compiler

    async def common_data(self) -> dict[str, Any]:
        """Common data for every language, keyed by language code."""
        total: dict[str, Any] = {"langCommon": dict(self._config.common_data)}
        for language in self._config.languages:
            data: Any = {}
            if self._functions.has_common:
                data = await invoke(self._functions.get(COMMON_FUNCTION), language)
            if not isinstance(data, Mapping):
                detail = f"expected a dict, got {type(data).__name__}: {data!r}"
                raise ValidationError(language, COMMON_FUNCTION, detail)
            total[language] = with_language_data(self._config, language, data)
        return total

    async def build(self) -> BuildReport:
        """Compile the bundle and lay out the function output directory.

        Raises:
            CompileError: The bundle failed to compile.
            ValidationError: ``get_common_data`` did not return a dict.
        """
        started = time.monotonic()
        output = self._config.function_output_path
        page_dir = output / "page"
        logger.info("Building function bundle into %s", output)

        await anyio.to_thread.run_sync(shutil.rmtree, output, True)
        bundle = await self._compiler.compile_all(write=False, standalone=True)
        await anyio.Path(page_dir).mkdir(parents=True, exist_ok=True)
        await anyio.Path(page_dir / BUNDLE_NAME).write_text(bundle.source, encoding="utf-8")
        await copy_assets(self._config, page_dir)

        common = await self.common_data()
        await anyio.Path(page_dir / COMMON_NAME).write_text(
            json.dumps(common, ensure_ascii=False), encoding="utf-8"
        )

        elapsed = time.monotonic() - started
        logger.info("Packaged %d page function(s) in %.2fs", len(bundle.exports), elapsed)
        return BuildReport(
            output=output,
            languages=tuple(self._config.languages),
            pages=len(bundle.exports),
            elapsed=elapsed,
        )
