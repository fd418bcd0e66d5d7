"""Tests for plume.routing: device classification and two-tier resolution."""

import pytest

from plume.config import SiteConfig
from plume.data.store import RecordStore
from plume.errors import ResolutionError
from plume.routing.device import classify_device
from plume.routing.resolver import Resolver, record_path_for
from plume.routing.route import RequestContext, RouteDefinition
from plume.templates.registry import TemplateRegistry

IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"
IPAD = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15"
DESKTOP = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0"


def _resolver(config: SiteConfig, routes: tuple[RouteDefinition, ...] = ()) -> Resolver:
    return Resolver(config, TemplateRegistry(config), RecordStore(config.data_path), routes)


class TestClassifyDevice:
    @pytest.mark.parametrize(
        ("agent", "device"),
        [(DESKTOP, "pc"), (IPAD, "ipad"), (IPHONE, "mobile"), ("curl/8.0", "unknown"), (None, "unknown")],
    )
    def test_classes(self, agent: str | None, device: str) -> None:
        assert classify_device(agent) == device


class TestRecordPath:
    @pytest.mark.parametrize(
        ("path", "record"),
        [("/blog/a.html", "blog/a"), ("/blog", "blog/index"), ("/blog/", "blog/index"), ("/", "index")],
    )
    def test_convention(self, path: str, record: str) -> None:
        assert record_path_for(path) == record


class TestRoutes:
    async def test_first_match_wins(self, config: SiteConfig) -> None:
        routes = (
            RouteDefinition(
                match=lambda ctx: ctx.path.startswith("/p/"),
                get_data=lambda ctx: {"from": "first"},
                get_template_id=lambda ctx: "home",
                name="first",
            ),
            RouteDefinition(
                match=lambda ctx: True,
                get_data=lambda ctx: {"from": "second"},
                get_template_id=lambda ctx: "blog_post",
                name="second",
            ),
        )

        resolution = await _resolver(config, routes).resolve("/p/x", "en")

        assert resolution.source == "route"
        assert resolution.route_name == "first"
        assert resolution.template_path == "home.html"
        assert resolution.data == {"from": "first"}

    async def test_route_beats_convention(self, config: SiteConfig, store: RecordStore) -> None:
        await store.write("en", "home", {"_template": "home.html", "title": "record"})
        routes = (
            RouteDefinition(
                match=lambda ctx: ctx.path == "/home.html",
                get_data=lambda ctx: {"title": "route"},
                get_template_id=lambda ctx: "blog_post",
            ),
        )

        resolution = await _resolver(config, routes).resolve("/home.html", "en")

        assert resolution.template_path == "blog/post.html"
        assert resolution.data == {"title": "route"}

    async def test_template_id_with_underscore_in_name(
        self, config: SiteConfig, make_file
    ) -> None:
        make_file("template/pages/blog/my_post.html", "<p>post</p>")
        routes = (
            RouteDefinition(
                match=lambda ctx: True,
                get_data=lambda ctx: {},
                get_template_id=lambda ctx: "blog_my_post",
            ),
        )

        resolution = await _resolver(config, routes).resolve("/anything", "en")

        assert resolution.template_path == "blog/my_post.html"
        assert resolution.exists

    async def test_async_callables_and_data_lookup(
        self, config: SiteConfig, store: RecordStore
    ) -> None:
        await store.write("fr", "products/42", {"name": "Chaise"})
        seen: list[RequestContext] = []

        async def match(ctx: RequestContext) -> bool:
            seen.append(ctx)
            return ctx.path.startswith("/products/")

        async def get_data(ctx: RequestContext) -> dict:
            return await ctx.data_lookup(f"products/{ctx.path.rsplit('/', 1)[1]}")

        routes = (RouteDefinition(match=match, get_data=get_data, get_template_id=lambda ctx: "home"),)
        resolution = await _resolver(config, routes).resolve(
            "/products/42?ref=x", "fr", user_agent=IPHONE
        )

        assert resolution.data == {"name": "Chaise"}
        assert seen[0].language == "fr"
        assert seen[0].device == "mobile"
        assert seen[0].url.query == "ref=x"


class TestConvention:
    async def test_record_names_template(self, config: SiteConfig, store: RecordStore) -> None:
        await store.write("en", "blog/first", {"_template": "blog/post.html", "body": "b"})

        resolution = await _resolver(config).resolve("/blog/first.html", "en")

        assert resolution.source == "record"
        assert resolution.template_path == "blog/post.html"
        assert resolution.record_path == "blog/first"
        assert resolution.data["body"] == "b"
        assert resolution.exists

    async def test_directory_uses_index(self, config: SiteConfig, store: RecordStore) -> None:
        await store.write("en", "index", {"_template": "home.html", "title": "t"})

        resolution = await _resolver(config).resolve("/", "en")

        assert resolution.template_path == "home.html"

    async def test_path_fallback_without_data(self, config: SiteConfig) -> None:
        resolution = await _resolver(config).resolve("/home.html", "en")

        assert resolution.source == "path"
        assert resolution.template_path == "home.html"
        assert resolution.data is None
        assert resolution.exists

    async def test_missing_template_is_not_raised(self, config: SiteConfig) -> None:
        resolution = await _resolver(config).resolve("/nope.html")

        assert not resolution.exists
        assert resolution.language == "en"
        with pytest.raises(ResolutionError, match="nope.html"):
            resolution.require_template()

    async def test_variant_narrowing(
        self, config: SiteConfig, store: RecordStore, make_file
    ) -> None:
        make_file("template/pages/fr/mobile/home.html", "<h1>mobile fr</h1>")
        await store.write("fr", "home", {"_template": "home.html"})

        mobile = await _resolver(config).resolve("/home.html", "fr", IPHONE)
        desktop = await _resolver(config).resolve("/home.html", "fr", DESKTOP)

        assert mobile.template_path == "fr/mobile/home.html"
        assert desktop.template_path == "home.html"


class TestResolveRecord:
    def test_record(self, config: SiteConfig) -> None:
        resolution = _resolver(config).resolve_record({"_template": "home.html"}, "en")

        assert resolution.template_path == "home.html"
        assert resolution.source == "record"

    def test_record_without_template(self, config: SiteConfig) -> None:
        with pytest.raises(ResolutionError):
            _resolver(config).resolve_record({"title": "x"}, "en")
