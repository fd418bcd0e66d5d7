"""Site configuration.

SiteConfig is a frozen dataclass: built once by the site module and passed
to every component. No module-level config object, no string-key lookups.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from plume.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class CustomData:
    """A data function whose output is not tied to a page template.

    Attributes:
        function: Registered data function name.
        output_path: Record path relative to the language directory
            (e.g. ``"blog/[slug].json"``). A bracketed stem splits list
            results into one record per element, named by that field.
        languages: Restrict to these languages. Empty means all.
    """

    function: str
    output_path: str
    languages: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CustomPage:
    """A page rendered straight from a data function during static builds.

    Attributes:
        function: Registered data function name. Called with the language;
            a function that also takes ``data_lookup`` receives an async
            reader of that language's persisted records.
        template: Template path relative to the pages root.
        output_path: HTML path relative to the language output directory.
            A bracketed stem (``"blog/[slug].html"``) renders one page per
            list element.
        languages: Restrict to these languages. Empty means all.
    """

    function: str
    template: str
    output_path: str
    languages: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """Site configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = SiteConfig(root="site", languages=("en", "fr"))
    """

    # Layout
    root: str | Path = "."
    template_dir: str = "template"
    pages_subdir: str = "pages"
    static_subdir: str = "static"
    public_dir: str = "public"
    template_suffix: str = ".html"

    # Outputs
    data_dir: str = "jsonData"
    bundle_path: str = "pagesFn/pages.py"
    static_output: str = "dist"
    function_output: str = "dist-fn"

    # Languages
    languages: tuple[str, ...] = ("en",)

    # Concurrency
    fetch_concurrency: int = 10
    compile_concurrency: int = 10
    write_concurrency: int = 12

    # Extra data and pages
    custom_data: tuple[CustomData, ...] = ()
    custom_pages: tuple[CustomPage, ...] = ()
    common_data: Mapping[str, Any] = field(default_factory=dict)
    language_data: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    static_dirs: tuple[str, ...] = ()  # Subdirectories of static/ to ship; empty ships all

    # Output passes
    expand_macros: bool = True
    macro_tag: str = "esi"
    scope_isolation: bool = True
    scope_prefix: str = "xy"
    scope_max_depth: int = 10

    # Templates
    autoescape: bool = True

    # Static build
    minify_html: bool = False  # Compress every page written by the static build

    # Dev server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = True
    refresh_common: bool = False  # Re-run get_common_data on every request

    log_level: str = "info"

    @property
    def root_path(self) -> Path:
        return Path(self.root).resolve()

    @property
    def template_root(self) -> Path:
        return self.root_path / self.template_dir

    @property
    def pages_dir(self) -> Path:
        return self.template_root / self.pages_subdir

    @property
    def static_dir(self) -> Path:
        return self.template_root / self.static_subdir

    @property
    def public_path(self) -> Path:
        return self.root_path / self.public_dir

    @property
    def data_path(self) -> Path:
        return self.root_path / self.data_dir

    @property
    def bundle_file(self) -> Path:
        return self.root_path / self.bundle_path

    @property
    def static_output_path(self) -> Path:
        return self.root_path / self.static_output

    @property
    def function_output_path(self) -> Path:
        return self.root_path / self.function_output

    @property
    def default_language(self) -> str:
        return self.languages[0]

    def validate(self) -> None:
        """Check invariants that a dataclass cannot express.

        Raises:
            ConfigurationError: On an empty language list, a non-positive
                concurrency limit, or a suffix without a leading dot.
        """
        if not self.languages:
            raise ConfigurationError("SiteConfig.languages must name at least one language")
        for name in ("fetch_concurrency", "compile_concurrency", "write_concurrency"):
            if getattr(self, name) < 1:
                msg = f"SiteConfig.{name} must be >= 1, got {getattr(self, name)}"
                raise ConfigurationError(msg)
        if not self.template_suffix.startswith("."):
            msg = f"SiteConfig.template_suffix must start with '.', got {self.template_suffix!r}"
            raise ConfigurationError(msg)
