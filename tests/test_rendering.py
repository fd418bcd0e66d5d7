"""Tests for plume.rendering: render function plus output passes."""

from dataclasses import replace

import pytest

from plume.config import SiteConfig
from plume.data.store import RecordStore
from plume.errors import ResolutionError
from plume.rendering import PageRenderer, not_found_page
from plume.templates.registry import TemplateRegistry


def _renderer(config: SiteConfig, functions=None) -> PageRenderer:
    return PageRenderer(config, TemplateRegistry(config), RecordStore(config.data_path), functions)


class TestLiveRendering:
    def test_renders_template(self, config: SiteConfig) -> None:
        renderer = _renderer(config)

        assert renderer.live
        assert renderer.render("home.html", {"title": "Hi"}, {}) == "<h1>Hi</h1>"

    def test_context_has_common(self, config: SiteConfig, make_file) -> None:
        make_file("template/pages/ctx.html", "{{ common.site }}")

        assert _renderer(config).render("ctx.html", {}, {"site": "S"}) == "S"

    def test_missing_template(self, config: SiteConfig) -> None:
        with pytest.raises(ResolutionError, match="nope.html"):
            _renderer(config).render("nope.html", {}, {})

    def test_macro_and_scope_passes(self, config: SiteConfig, make_file) -> None:
        make_file(
            "template/pages/slot.html",
            "<template><p>^^ad^^</p></template>",
        )

        html = _renderer(config).render("slot.html", {"ad": "A1"}, {})

        assert "<template" not in html
        assert "A1" in html
        assert 'data-xy-' in html

    def test_passes_can_be_disabled(self, config: SiteConfig, make_file) -> None:
        make_file("template/pages/slot.html", "<template><p>^^ad^^</p></template>")
        config = replace(config, expand_macros=False, scope_isolation=False)

        html = _renderer(config).render("slot.html", {"ad": "A1"}, {})

        assert html == "<template><p>^^ad^^</p></template>"


class TestBundleRendering:
    def test_uses_bundle_functions(self, config: SiteConfig) -> None:
        renderer = _renderer(config, {"blog_post": lambda ctx: f"post:{ctx['data']['n']}"})

        assert not renderer.live
        assert renderer.render("blog/post.html", {"n": 3}, {}) == "post:3"

    def test_page_path_defaults_to_template(self, config: SiteConfig) -> None:
        seen = []
        renderer = _renderer(config, {"home": lambda ctx: seen.append(ctx) or ""})

        renderer.render("home.html", {}, {})
        renderer.render("home.html", {}, {}, "custom/home.html")

        assert [ctx["_page_path"] for ctx in seen] == ["home.html", "custom/home.html"]

    def test_missing_export(self, config: SiteConfig) -> None:
        with pytest.raises(ResolutionError):
            _renderer(config, {}).render("home.html", {}, {})


class TestCommonData:
    async def test_common_merged_with_config(self, config: SiteConfig, store: RecordStore) -> None:
        await store.write_common("en", {"a": 1, "nested": {"x": 1}})
        config = replace(config, common_data={"nested": {"y": 2}})

        common = await _renderer(config).common_for("en")

        assert common == {"a": 1, "nested": {"x": 1, "y": 2}}

    async def test_missing_common_is_empty(self, config: SiteConfig) -> None:
        assert await _renderer(config).common_for("fr") == {}


def test_not_found_page_escapes() -> None:
    assert not_found_page("<x>.html") == "<h1>Template not found: &lt;x&gt;.html</h1>\n"
