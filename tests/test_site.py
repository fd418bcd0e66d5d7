"""Tests for plume.site: registration, freezing and data module loading."""

import textwrap
from pathlib import Path

import pytest

from plume import Site, SiteConfig
from plume.errors import ConfigurationError, MissingFunctionError


class TestRegistration:
    def test_bare_decorator(self, config: SiteConfig) -> None:
        site = Site(config)

        @site.data
        async def get_home_data(language):
            return {}

        assert "get_home_data" in site.functions
        assert site.functions.get("get_home_data") is get_home_data

    def test_named_decorator(self, config: SiteConfig) -> None:
        site = Site(config)

        @site.data(name="get_blog_post_data")
        def posts(language):
            return []

        assert "get_blog_post_data" in site.functions
        assert "posts" not in site.functions

    def test_duplicate_name(self, config: SiteConfig) -> None:
        site = Site(config)
        site.data(name="get_home_data")(lambda language: {})

        with pytest.raises(ConfigurationError, match="already registered"):
            site.data(name="get_home_data")(lambda language: {})

    def test_init_hook(self, config: SiteConfig) -> None:
        site = Site(config)

        @site.init
        def init():
            pass

        assert site.functions.init is init

    def test_routes_keep_order(self, config: SiteConfig) -> None:
        site = Site(config)
        first = site.route(match=lambda c: True, get_template_id=lambda c: "a", get_data=lambda c: {})
        second = site.route(
            match=lambda c: True, get_template_id=lambda c: "b", get_data=lambda c: {}, name="b"
        )

        assert site.routes == (first, second)
        assert site.resolver().routes == (first, second)

    def test_unknown_function(self, config: SiteConfig) -> None:
        with pytest.raises(MissingFunctionError, match="get_nothing_data"):
            Site(config).functions.get("get_nothing_data")


class TestFreezing:
    def test_registration_after_first_use(self, config: SiteConfig) -> None:
        site = Site(config)
        site.registry()

        with pytest.raises(ConfigurationError, match="frozen"):
            site.data(lambda language: {})
        with pytest.raises(ConfigurationError, match="frozen"):
            site.route(match=lambda c: True, get_template_id=lambda c: "a", get_data=lambda c: {})

    def test_invalid_config_fails_on_first_use(self, site_root: Path) -> None:
        site = Site(SiteConfig(root=site_root, languages=()))

        with pytest.raises(ConfigurationError, match="at least one language"):
            site.store()

    async def test_fetch_requires_every_template_function(self, config: SiteConfig) -> None:
        site = Site(config)
        site.data(name="get_home_data")(lambda language: {})

        with pytest.raises(MissingFunctionError, match="blog/post.html"):
            await site.fetch()


class TestDataModule:
    def test_load_from_path(self, config: SiteConfig, make_file) -> None:
        make_file(
            "site_data.py",
            textwrap.dedent(
                """
                def init():
                    pass

                async def get_home_data(language):
                    return {"title": language}

                def get_blog_post_data(language):
                    return []

                def helper():
                    pass
                """
            ),
        )
        site = Site(config)

        count = site.load_data_module("site_data.py")

        assert count == 2
        assert set(site.functions) == {"get_home_data", "get_blog_post_data"}
        assert site.functions.init is not None
        assert site.data_module_path == config.root_path / "site_data.py"

    async def test_loaded_functions_feed_fetch(self, config: SiteConfig, make_file, store) -> None:
        path = make_file(
            "fetch_data.py",
            "def get_home_data(language):\n    return {'title': language}\n\n"
            "def get_blog_post_data(language):\n    return {'body': 'b'}\n",
        )
        site = Site(config)
        site.load_data_module(path)

        report = await site.fetch()

        assert report.tasks == 4
        assert (await store.read("fr", "home"))["title"] == "fr"
