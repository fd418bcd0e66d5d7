"""Shared fixtures: a throwaway site tree under ``tmp_path``."""

from pathlib import Path

import pytest

from plume.config import SiteConfig
from plume.data.functions import DataFunctions
from plume.data.store import RecordStore
from plume.templates.registry import TemplateRegistry


def write(root: Path, relative: str, text: str) -> Path:
    """Write *text* to ``root/relative``, creating parent directories."""
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """A site with two pages and a shared layout."""
    write(
        tmp_path,
        "template/layouts/base.html",
        "<html><body>{% block content %}{% endblock %}</body></html>",
    )
    write(tmp_path, "template/pages/home.html", "<h1>{{ data.title }}</h1>")
    write(tmp_path, "template/pages/blog/post.html", "<article>{{ data.body }}</article>")
    return tmp_path


@pytest.fixture
def config(site_root: Path) -> SiteConfig:
    return SiteConfig(root=site_root, languages=("en", "fr"))


@pytest.fixture
def registry(config: SiteConfig) -> TemplateRegistry:
    return TemplateRegistry(config)


@pytest.fixture
def store(config: SiteConfig) -> RecordStore:
    return RecordStore(config.data_path)


@pytest.fixture
def functions() -> DataFunctions:
    return DataFunctions()


@pytest.fixture
def make_file(site_root: Path):
    """Write a file relative to the site root."""

    def _make(relative: str, text: str) -> Path:
        return write(site_root, relative, text)

    return _make
