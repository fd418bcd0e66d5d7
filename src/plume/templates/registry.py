"""Template discovery and canonical page identifiers.

Walks the pages directory and maps every template file to a flat
identifier used as its bundle export and data function name::

    pages/home.html          -> canonical id "home"
    pages/blog/post.html     -> canonical id "blog_post"
    pages/blog/my-post.html  -> canonical id "blog_my-post", identifier "blog_my_post"

Language and device directories (``pages/fr/home.html``,
``pages/mobile/home.html``) are variants of the same logical page and can
be folded away with :meth:`TemplateRegistry.strip_variant_segments`.
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plume.config import SiteConfig

# Device classes a template directory may be specialised for
DEVICES = ("pc", "ipad", "mobile")

COMMON_FUNCTION = "get_common_data"
INIT_FUNCTION = "init"


def normalize_path(path: str) -> str:
    """Use forward slashes and drop leading/trailing separators."""
    return path.replace("\\", "/").strip("/")


def paths_equal(a: str, b: str) -> bool:
    """Compare two template paths ignoring slash direction."""
    return a.replace("/", "").replace("\\", "") == b.replace("/", "").replace("\\", "")


def to_identifier(canonical_id: str) -> str:
    """Make a canonical id usable as a Python name.

    ``-`` becomes ``_``. Ids starting with a digit or spelling a keyword get
    a leading ``_``, so ``404`` is exported as ``_404``.
    """
    name = canonical_id.replace("-", "_")
    if name[:1].isdigit() or keyword.iskeyword(name):
        name = "_" + name
    return name


@dataclass(frozen=True, slots=True)
class TemplateFile:
    """A template discovered under the pages root.

    Attributes:
        path: Slash-separated path relative to the pages root, suffix included.
        canonical_id: ``path`` with separators replaced by ``_`` and the
            suffix removed.
    """

    path: str
    canonical_id: str

    @property
    def identifier(self) -> str:
        """Python-safe form of the canonical id (bundle export name)."""
        return to_identifier(self.canonical_id)

    @property
    def data_function_name(self) -> str:
        """Name of the data function that feeds this template."""
        return f"get_{self.canonical_id.replace('-', '_')}_data"

    @property
    def stem_path(self) -> str:
        """``path`` without its suffix."""
        return self.path.rsplit(".", 1)[0] if "." in self.path.rsplit("/", 1)[-1] else self.path


class TemplateRegistry:
    """Enumerates page templates and converts between paths and ids.

    Stateless apart from the configuration it was built with; every call to
    :meth:`list_templates` re-reads the filesystem.
    """

    __slots__ = ("_languages", "_pages_dir", "_suffix")

    def __init__(self, config: SiteConfig) -> None:
        self._pages_dir = config.pages_dir
        self._suffix = config.template_suffix
        self._languages = tuple(config.languages)

    @property
    def pages_dir(self) -> Path:
        return self._pages_dir

    @property
    def suffix(self) -> str:
        return self._suffix

    def list_templates(self) -> tuple[TemplateFile, ...]:
        """Return every template under the pages root, sorted by path.

        Raises:
            FileNotFoundError: If the pages directory does not exist.
            OSError: If the directory cannot be read.
        """
        root = self._pages_dir
        if not root.is_dir():
            raise FileNotFoundError(f"Pages directory not found: {root}")

        paths = {
            normalize_path(item.relative_to(root).as_posix())
            for item in root.rglob(f"*{self._suffix}")
            if item.is_file()
        }
        return tuple(self.template_for(path) for path in sorted(paths))

    def template_for(self, path: str) -> TemplateFile:
        """Build a TemplateFile for a pages-relative path (file need not exist)."""
        path = normalize_path(path)
        return TemplateFile(path=path, canonical_id=self.to_canonical_id(path))

    def to_canonical_id(self, path: str) -> str:
        """``blog/post.html`` -> ``blog_post``."""
        path = normalize_path(path)
        if path.endswith(self._suffix):
            path = path[: -len(self._suffix)]
        return path.replace("/", "_")

    def to_path(self, canonical_id: str) -> str:
        """``blog_post`` -> ``blog/post.html``. Inverse of :meth:`to_canonical_id`.

        Existing templates are matched by canonical id or identifier first, so
        ``blog_my_post`` finds ``blog/my_post.html``. Ids with no template
        fall back to replacing every ``_`` with ``/``.
        """
        if self._pages_dir.is_dir():
            for template in self.list_templates():
                if canonical_id in (template.canonical_id, template.identifier):
                    return template.path
        return canonical_id.replace("_", "/") + self._suffix

    def exists(self, path: str) -> bool:
        return (self._pages_dir / normalize_path(path)).is_file()

    def find_template_by_function_name(self, name: str) -> TemplateFile | None:
        """Find the template a data function name belongs to.

        Accepts ``get_blog_post_data``, ``blog_post`` or ``blog-post``.
        Returns ``None`` when no template matches.
        """
        bare = name
        if bare.startswith("get_"):
            bare = bare[4:]
        if bare.endswith("_data"):
            bare = bare[:-5]
        wanted = to_identifier(bare)

        for template in self.list_templates():
            if template.canonical_id == bare or template.identifier == wanted:
                return template
        return None

    def strip_variant_segments(self, path: str) -> str:
        """Drop language and device directories from a template path.

        ``fr/mobile/home.html`` -> ``home.html``
        """
        skip = {*self._languages, *DEVICES}
        return "/".join(part for part in normalize_path(path).split("/") if part not in skip)

    def variant_candidates(self, path: str, language: str, device: str) -> list[str]:
        """Template paths to try for a logical page, most specific first."""
        base = self.strip_variant_segments(path)
        candidates = [
            f"{language}/{device}/{base}",
            f"{language}/{base}",
            f"{device}/{base}",
            base,
        ]
        original = normalize_path(path)
        if original not in candidates:
            candidates.append(original)
        return candidates

    def select_variant(self, path: str, language: str, device: str) -> str | None:
        """Return the first existing variant of *path*, or ``None``."""
        for candidate in self.variant_candidates(path, language, device):
            if self.exists(candidate):
                return candidate
        return None
