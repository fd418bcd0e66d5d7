"""Page bundle compiler.

Compiles every page template into one generated Python module:

1. Seed a buffer with the runtime preamble (``assets/runtime.py``, read once)
2. Compile templates concurrently (bounded pool) through the client compiler
3. Cut the ``def <identifier>(locals)`` function out of each generated source
4. Append the functions in template enumeration order, not completion order
5. Minify the buffer (AST round-trip) and write it in a single replace

The bundle exports one render function per page, named by the page's
canonical identifier, and lists them in ``__all__``::

    from pagesFn.pages import home, blog_post
    html = home({"data": {...}, "common": {...}})
"""

from __future__ import annotations

import ast
import functools
import importlib.util
import keyword
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING

import anyio

from plume._internal.pool import TaskPool
from plume.compiler.client import ClientCompiler, KidaClientCompiler
from plume.errors import CompileError
from plume.templates.registry import paths_equal

if TYPE_CHECKING:
    from types import ModuleType

    from plume._internal.types import RenderFunction
    from plume.config import SiteConfig
    from plume.templates.registry import TemplateFile, TemplateRegistry

logger = logging.getLogger("plume.compiler")


@dataclass(frozen=True, slots=True)
class Bundle:
    """A compiled, minified page bundle.

    Attributes:
        source: Module source text as written to disk.
        exports: Exported function names, in template enumeration order.
        path: Where the bundle was written, if it was.
    """

    source: str
    exports: tuple[str, ...]
    path: Path | None = None


def load_runtime() -> str:
    """Read the runtime preamble shipped with plume."""
    return resources.files("plume.compiler").joinpath("assets", "runtime.py").read_text(
        encoding="utf-8"
    )


def extract_function(generated: str, name: str, template: str) -> str:
    """Return the exact source slice of ``def <name>`` in *generated*.

    Raises:
        CompileError: If the generated source does not parse or does not
            define *name* at module level.
    """
    try:
        module = ast.parse(generated)
    except SyntaxError as exc:
        raise CompileError(template, f"generated source does not parse: {exc}") from exc

    for node in module.body:
        if isinstance(node, ast.FunctionDef) and node.name == name:
            segment = ast.get_source_segment(generated, node)
            if segment:
                return segment
    raise CompileError(template, f"cannot find function {name!r} in compiled output")


class _DropDocstrings(ast.NodeTransformer):
    """Remove docstrings from modules, classes and functions."""

    def _strip(self, node: ast.AST) -> ast.AST:
        self.generic_visit(node)
        body = getattr(node, "body", None)
        if (
            body
            and isinstance(body[0], ast.Expr)
            and isinstance(body[0].value, ast.Constant)
            and isinstance(body[0].value.value, str)
        ):
            body.pop(0)
            if not body and not isinstance(node, ast.Module):
                body.append(ast.Pass())
        return node

    visit_Module = _strip
    visit_ClassDef = _strip
    visit_FunctionDef = _strip
    visit_AsyncFunctionDef = _strip


def minify(source: str) -> str:
    """Shrink a Python module: comments, docstrings and layout are dropped.

    Raises:
        CompileError: If *source* is not valid Python.
    """
    try:
        tree = ast.parse(source)
    except SyntaxError as exc:
        raise CompileError(None, f"bundle minification failed: {exc}") from exc
    tree = _DropDocstrings().visit(tree)
    ast.fix_missing_locations(tree)
    return ast.unparse(tree) + "\n"


def write_atomic(path: Path, text: str) -> None:
    """Write *text* to *path* in one replace; readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def load_bundle(path: str | Path) -> dict[str, RenderFunction]:
    """Import a bundle file and return ``{identifier: render_fn}``.

    Each call executes the file in a fresh module namespace.
    """
    module = _import_file(Path(path))
    names = getattr(module, "__all__", ())
    return {name: getattr(module, name) for name in names}


def _import_file(path: Path) -> ModuleType:
    module_name = f"_plume_bundle_{abs(hash(str(path.resolve())))}_{time.monotonic_ns()}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load bundle from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class BundleCompiler:
    """Compiles page templates into a single bundle file.

    Args:
        config: Site configuration (paths, suffix, concurrency).
        registry: Template registry for enumeration and ids.
        client: External compiler; defaults to :class:`KidaClientCompiler`
            primed with the shared layouts and partials.
    """

    __slots__ = ("_client", "_config", "_registry")

    def __init__(
        self,
        config: SiteConfig,
        registry: TemplateRegistry,
        client: ClientCompiler | None = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._client = client

    def shared_sources(self) -> dict[str, str]:
        """Sources of every non-page template, keyed by kida template name."""
        root = self._config.template_root
        pages = self._config.pages_dir
        static = self._config.static_dir
        shared: dict[str, str] = {}
        if not root.is_dir():
            return shared
        for item in sorted(root.rglob(f"*{self._config.template_suffix}")):
            if not item.is_file() or item.is_relative_to(pages) or item.is_relative_to(static):
                continue
            shared[item.relative_to(root).as_posix()] = item.read_text(encoding="utf-8")
        return shared

    def _select(self, filter_path: str | None) -> tuple[TemplateFile, ...]:
        templates = self._registry.list_templates()
        seen: dict[str, str] = {}
        for template in templates:
            if not template.identifier.isidentifier() or keyword.iskeyword(template.identifier):
                msg = f"{template.identifier!r} is not a valid function name; rename the file"
                raise CompileError(template.path, msg)
            if template.identifier in seen:
                msg = f"function name {template.identifier!r} is also used by {seen[template.identifier]}"
                raise CompileError(template.path, msg)
            seen[template.identifier] = template.path

        if not filter_path:
            return templates
        selected = tuple(t for t in templates if paths_equal(filter_path, t.path))
        if not selected:
            msg = f"template {filter_path!r} does not exist under {self._registry.pages_dir}"
            raise CompileError(filter_path, msg)
        return selected

    async def compile_all(
        self,
        filter_path: str | None = None,
        *,
        write: bool = True,
        standalone: bool = False,
    ) -> Bundle:
        """Compile page templates into a bundle and write it.

        Args:
            filter_path: Only compile this template (pages-relative path,
                slash direction ignored).
            write: Write the bundle to ``config.bundle_file``.
            standalone: Bake the scope-isolation pass into the bundle (when
                ``config.scope_isolation`` is set) so pages rendered on
                demand come out scoped without a ``PageRenderer``.

        Raises:
            CompileError: A template failed to compile, its function was not
                found, or the bundle could not be minified. Nothing is written.
        """
        started = time.monotonic()
        templates = self._select(filter_path)
        shared = self.shared_sources()
        client = self._client or KidaClientCompiler(
            autoescape=self._config.autoescape, shared=shared
        )
        pages_subdir = self._config.pages_subdir
        results: list[str | None] = [None] * len(templates)

        def make_task(index: int, template: TemplateFile):
            async def task() -> None:
                source_path = anyio.Path(self._registry.pages_dir / template.path)
                source = await source_path.read_text(encoding="utf-8")
                generated = await anyio.to_thread.run_sync(
                    functools.partial(
                        client.compile_client,
                        source,
                        name=template.identifier,
                        template_name=f"{pages_subdir}/{template.path}",
                    )
                )
                results[index] = extract_function(generated, template.identifier, template.path)
                logger.debug("Compiled %s as %s", template.path, template.identifier)

            return task

        await TaskPool(self._config.compile_concurrency).run(
            make_task(index, template) for index, template in enumerate(templates)
        )

        exports = tuple(t.identifier for t in templates)
        scope = None
        if standalone and self._config.scope_isolation:
            scope = (self._config.scope_prefix, self._config.scope_max_depth)
        parts = [
            load_runtime(),
            f"_configure({self._config.autoescape!r}, {shared!r}, {scope!r})\n",
            *(fn for fn in results if fn is not None),
            f"__all__ = {list(exports)!r}\n",
        ]
        source = minify("\n\n".join(parts))

        path: Path | None = None
        if write:
            path = self._config.bundle_file
            write_atomic(path, source)
            logger.info(
                "Compiled %d template(s) into %s in %.2fs",
                len(exports), path, time.monotonic() - started,
            )
        return Bundle(source=source, exports=exports, path=path)
