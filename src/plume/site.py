"""The plume site object.

Mutable during setup (data functions, init hook, routes). Frozen the first
time a component is built from it, after which registration raises.

Usage::

    from plume import Site, SiteConfig

    site = Site(SiteConfig(root="site", languages=("en", "fr")))

    @site.data
    async def get_home_data(language):
        return {"title": TITLES[language]}

    site.route(
        match=lambda ctx: ctx.path.startswith("/p/"),
        get_template_id=lambda ctx: "product",
        get_data=lambda ctx: ctx.data_lookup(f"products/{ctx.path[3:]}"),
    )
"""

import importlib
import importlib.util
import sys
import threading
from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import Any

from plume.build.functions import FunctionBuilder
from plume.build.static import BuildReport, StaticBuilder
from plume.compiler.bundle import Bundle, BundleCompiler
from plume.config import SiteConfig
from plume.data.functions import DataFunctions
from plume.data.scheduler import DataScheduler, FetchReport
from plume.data.store import RecordStore
from plume.errors import ConfigurationError
from plume.rendering import PageRenderer
from plume.routing.resolver import Resolver
from plume.routing.route import RequestContext, RouteDefinition
from plume.server.app import DevApp
from plume.templates.registry import TemplateRegistry


def _import_path(path: Path) -> ModuleType:
    module_name = path.stem
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load data module from {path}"
        raise ConfigurationError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules.setdefault(module_name, module)
    spec.loader.exec_module(module)
    return module


class Site:
    """A multi-language site: configuration plus registered user code.

    Thread safety:
        Registration happens at import time on one thread. Freezing uses a
        lock with a double check so concurrent first use builds once.
    """

    __slots__ = (
        "_data_module_path",
        "_freeze_lock",
        "_frozen",
        "_functions",
        "_routes",
        "config",
    )

    def __init__(self, config: SiteConfig | None = None) -> None:
        self.config: SiteConfig = config or SiteConfig()
        self._functions = DataFunctions()
        self._routes: list[RouteDefinition] = []
        self._data_module_path: Path | None = None
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Registration --

    def data(
        self, func: Callable[..., Any] | None = None, *, name: str | None = None
    ) -> Any:
        """Register a data function, named after the function by default.

        Works bare (``@site.data``) or with a name
        (``@site.data(name="get_blog_post_data")``).
        """

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._functions.register(name or fn.__name__, fn)
            return fn

        if func is not None:
            return decorator(func)
        return decorator

    def init(self, func: Callable[[], Any]) -> Callable[[], Any]:
        """Register the hook run once before fetching and before builds."""
        self._check_not_frozen()
        self._functions.set_init(func)
        return func

    def route(
        self,
        *,
        match: Callable[[RequestContext], bool],
        get_template_id: Callable[[RequestContext], Any],
        get_data: Callable[[RequestContext], Any],
        name: str | None = None,
    ) -> RouteDefinition:
        """Add an explicit route. Routes are tried in registration order."""
        definition = RouteDefinition(
            match=match, get_data=get_data, get_template_id=get_template_id, name=name
        )
        self.add_route(definition)
        return definition

    def add_route(self, definition: RouteDefinition) -> None:
        self._check_not_frozen()
        self._routes.append(definition)

    def load_data_module(self, module: ModuleType | str | Path) -> int:
        """Register every ``get_*_data`` function and ``init`` of a module.

        Args:
            module: A module object, a dotted module name, or a path to a
                ``.py`` file.

        Returns the number of data functions registered.
        """
        self._check_not_frozen()
        if isinstance(module, Path) or (isinstance(module, str) and module.endswith(".py")):
            path = Path(module)
            if not path.is_absolute():
                path = self.config.root_path / path
            module = _import_path(path)
        elif isinstance(module, str):
            module = importlib.import_module(module)
        if getattr(module, "__file__", None):
            self._data_module_path = Path(module.__file__)
        return self._functions.register_module(module)

    # -- Introspection --

    @property
    def functions(self) -> DataFunctions:
        return self._functions

    @property
    def routes(self) -> tuple[RouteDefinition, ...]:
        return tuple(self._routes)

    @property
    def data_module_path(self) -> Path | None:
        """File of the last data module loaded, if any."""
        return self._data_module_path

    # -- Components --

    def registry(self) -> TemplateRegistry:
        self._ensure_frozen()
        return TemplateRegistry(self.config)

    def store(self) -> RecordStore:
        self._ensure_frozen()
        return RecordStore(self.config.data_path)

    def scheduler(self) -> DataScheduler:
        return DataScheduler(self.config, self.registry(), self._functions, self.store())

    def compiler(self) -> BundleCompiler:
        return BundleCompiler(self.config, self.registry())

    def resolver(self) -> Resolver:
        return Resolver(self.config, self.registry(), self.store(), self._routes)

    def renderer(self, functions: Any = None) -> PageRenderer:
        """Live renderer, or one backed by bundle *functions*."""
        return PageRenderer(self.config, self.registry(), self.store(), functions)

    def static_builder(self) -> StaticBuilder:
        return StaticBuilder(
            self.config,
            self.registry(),
            self._functions,
            self.store(),
            self.compiler(),
            self.resolver(),
        )

    def function_builder(self) -> FunctionBuilder:
        return FunctionBuilder(self.config, self._functions, self.compiler())

    def dev_app(self) -> DevApp:
        scheduler = self.scheduler() if self._functions.has_common else None
        return DevApp(self.config, self.resolver(), self.renderer(), scheduler)

    # -- Operations --

    async def fetch(self, function_names: Any = None, languages: Any = None) -> FetchReport:
        return await self.scheduler().fetch(function_names, languages)

    async def compile(self, template: str | None = None) -> Bundle:
        return await self.compiler().compile_all(template)

    async def build(self, *, functions: bool = False) -> BuildReport:
        if functions:
            return await self.function_builder().build()
        return await self.static_builder().build()

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the development server (blocking)."""
        from plume.server.dev import run_dev_server

        run_dev_server(
            self.dev_app(),
            host or self.config.host,
            port or self.config.port,
            log_level=self.config.log_level,
        )

    # -- Internal --

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the site after it has been frozen."
            raise ConfigurationError(msg)

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self.config.validate()
            self._functions.freeze()
            self._frozen = True
