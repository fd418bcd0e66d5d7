"""Tests for plume.templates.registry: discovery and canonical ids."""

from pathlib import Path

import pytest

from plume.config import SiteConfig
from plume.templates.registry import TemplateRegistry, normalize_path, paths_equal


class TestListTemplates:
    def test_sorted_with_ids(self, registry: TemplateRegistry) -> None:
        templates = registry.list_templates()

        assert [t.path for t in templates] == ["blog/post.html", "home.html"]
        assert [t.canonical_id for t in templates] == ["blog_post", "home"]

    def test_layouts_are_not_pages(self, registry: TemplateRegistry) -> None:
        assert all("base" not in t.path for t in registry.list_templates())

    def test_suffix_filter(self, site_root: Path, make_file) -> None:
        make_file("template/pages/notes.txt", "ignored")
        make_file("template/pages/about.tpl", "about")
        registry = TemplateRegistry(SiteConfig(root=site_root, template_suffix=".tpl"))

        assert [t.path for t in registry.list_templates()] == ["about.tpl"]

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        registry = TemplateRegistry(SiteConfig(root=tmp_path))

        with pytest.raises(FileNotFoundError):
            registry.list_templates()

    def test_hyphenated_name(self, site_root: Path, make_file) -> None:
        make_file("template/pages/blog/my-post.html", "x")
        registry = TemplateRegistry(SiteConfig(root=site_root))
        template = registry.template_for("blog/my-post.html")

        assert template.canonical_id == "blog_my-post"
        assert template.identifier == "blog_my_post"
        assert template.data_function_name == "get_blog_my_post_data"
        assert template.stem_path == "blog/my-post"

    @pytest.mark.parametrize(
        ("path", "identifier", "function"),
        [
            ("404.html", "_404", "get_404_data"),
            ("class.html", "_class", "get_class_data"),
            ("errors/500.html", "errors_500", "get_errors_500_data"),
        ],
    )
    def test_names_that_are_not_python_names(
        self, registry: TemplateRegistry, path: str, identifier: str, function: str
    ) -> None:
        template = registry.template_for(path)

        assert template.identifier == identifier
        assert template.data_function_name == function


class TestIds:
    def test_round_trip(self, registry: TemplateRegistry, make_file) -> None:
        make_file("template/pages/blog/my_post.html", "<p>post</p>")
        make_file("template/pages/my-page.html", "<p>page</p>")

        for template in registry.list_templates():
            assert registry.to_path(registry.to_canonical_id(template.path)) == template.path

    def test_identifier_finds_dashed_template(self, registry: TemplateRegistry, make_file) -> None:
        make_file("template/pages/my-page.html", "<p>page</p>")

        assert registry.to_path("my_page") == "my-page.html"

    def test_unknown_id_falls_back_to_separators(self, registry: TemplateRegistry) -> None:
        assert registry.to_path("news_latest") == "news/latest.html"

    def test_backslashes_normalized(self, registry: TemplateRegistry) -> None:
        assert registry.to_canonical_id("blog\\post.html") == "blog_post"

    def test_find_by_function_name(self, registry: TemplateRegistry) -> None:
        found = registry.find_template_by_function_name("get_blog_post_data")

        assert found is not None
        assert found.path == "blog/post.html"

    def test_find_by_bare_id(self, registry: TemplateRegistry) -> None:
        found = registry.find_template_by_function_name("home")
        assert found is not None and found.path == "home.html"

    def test_find_unknown(self, registry: TemplateRegistry) -> None:
        assert registry.find_template_by_function_name("get_nope_data") is None

    def test_paths_equal_ignores_slash_direction(self) -> None:
        assert paths_equal("blog\\post.html", "blog/post.html")
        assert not paths_equal("blog/post.html", "blog/other.html")

    def test_normalize_path(self) -> None:
        assert normalize_path("\\a\\b/") == "a/b"


class TestVariants:
    def test_strip_variant_segments(self, registry: TemplateRegistry) -> None:
        assert registry.strip_variant_segments("fr/mobile/home.html") == "home.html"
        assert registry.strip_variant_segments("blog/post.html") == "blog/post.html"

    def test_candidates_most_specific_first(self, registry: TemplateRegistry) -> None:
        assert registry.variant_candidates("home.html", "fr", "mobile") == [
            "fr/mobile/home.html",
            "fr/home.html",
            "mobile/home.html",
            "home.html",
        ]

    def test_select_variant(self, registry: TemplateRegistry, make_file) -> None:
        make_file("template/pages/fr/home.html", "<h1>fr</h1>")

        assert registry.select_variant("home.html", "fr", "pc") == "fr/home.html"
        assert registry.select_variant("home.html", "en", "pc") == "home.html"
        assert registry.select_variant("missing.html", "en", "pc") is None
