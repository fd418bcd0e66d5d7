"""Tests for the development ASGI app, called directly."""

import os
from dataclasses import replace

from plume.config import SiteConfig
from plume.site import Site


async def _call(app, path: str, method: str = "GET", headers=()) -> tuple[int, bytes, dict]:
    sent: list[dict] = []

    async def receive() -> dict:
        return {"type": "http.request", "body": b"", "more_body": False}

    async def send(message: dict) -> None:
        sent.append(message)

    path, _, query = path.partition("?")
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query.encode("latin-1"),
        "headers": list(headers),
    }
    await app(scope, receive, send)
    start, body = sent
    return start["status"], body["body"], dict(start["headers"])


def _site(config: SiteConfig) -> Site:
    site = Site(config)

    @site.data
    async def get_home_data(language):
        return {"title": "Home"}

    @site.data
    async def get_blog_post_data(language):
        return {"body": "Post"}

    return site


class TestPages:
    async def test_record_page(self, config: SiteConfig, store) -> None:
        await store.write("en", "index", {"_template": "home.html", "title": "Welcome"})
        app = _site(config).dev_app()

        status, body, headers = await _call(app, "/")

        assert status == 200
        assert body == b"<h1>Welcome</h1>"
        assert headers[b"content-type"].startswith(b"text/html")
        assert headers[b"content-length"] == str(len(body)).encode()

    async def test_path_convention_without_record(self, config: SiteConfig, make_file) -> None:
        make_file("template/pages/about.html", "<p>About</p>")
        app = _site(config).dev_app()

        status, body, _ = await _call(app, "/about.html")

        assert status == 200
        assert body == b"<p>About</p>"

    async def test_explicit_route(self, config: SiteConfig) -> None:
        site = _site(config)
        site.route(
            match=lambda ctx: ctx.path.startswith("/p/"),
            get_template_id=lambda ctx: "home",
            get_data=lambda ctx: {"title": ctx.path[3:]},
        )

        status, body, _ = await _call(site.dev_app(), "/p/shoes")

        assert status == 200
        assert body == b"<h1>shoes</h1>"

    async def test_missing_template_is_not_found_page(self, config: SiteConfig) -> None:
        app = _site(config).dev_app()

        status, body, _ = await _call(app, "/nowhere.html")

        assert status == 404
        assert b"Template not found: nowhere.html" in body

    async def test_edits_show_up_on_next_request(self, config: SiteConfig, make_file) -> None:
        make_file("template/pages/about.html", "<p>About</p>")
        app = _site(config).dev_app()
        await _call(app, "/about.html")

        changed = make_file("template/pages/about.html", "<main>changed</main>")
        mtime = changed.stat().st_mtime + 5
        os.utime(changed, (mtime, mtime))
        _, body, _ = await _call(app, "/about.html")

        assert body == b"<main>changed</main>"

    async def test_refresh_common_reruns_function(self, config: SiteConfig, make_file) -> None:
        make_file("template/pages/home.html", "{{ common.calls }}")
        site = _site(replace(config, refresh_common=True))
        calls = []

        @site.data
        async def get_common_data(language):
            calls.append(language)
            return {"calls": len(calls)}

        app = site.dev_app()
        await _call(app, "/home.html")
        _, body, _ = await _call(app, "/home.html")

        assert body == b"2"
        assert calls == ["en", "en"]

    async def test_head_has_headers_without_body(self, config: SiteConfig, store) -> None:
        await store.write("en", "index", {"_template": "home.html", "title": "Welcome"})
        app = _site(config).dev_app()

        status, body, headers = await _call(app, "/", method="HEAD")

        assert status == 200
        assert body == b""
        assert headers[b"content-length"] == str(len(b"<h1>Welcome</h1>")).encode()

    async def test_post_not_allowed(self, config: SiteConfig) -> None:
        status, _, _ = await _call(_site(config).dev_app(), "/", method="POST")

        assert status == 405


class TestAssets:
    async def test_static_file(self, config: SiteConfig, make_file) -> None:
        make_file("template/static/css/site.css", "body { margin: 0 }")

        status, body, headers = await _call(_site(config).dev_app(), "/static/css/site.css")

        assert status == 200
        assert body == b"body { margin: 0 }"
        assert headers[b"content-type"] == b"text/css"

    async def test_head_static_file(self, config: SiteConfig, make_file) -> None:
        make_file("template/static/css/site.css", "body { margin: 0 }")

        status, body, _ = await _call(_site(config).dev_app(), "/static/css/site.css", "HEAD")

        assert status == 200
        assert body == b""

    async def test_public_file(self, config: SiteConfig, make_file) -> None:
        make_file("public/robots.txt", "User-agent: *")

        status, body, _ = await _call(_site(config).dev_app(), "/robots.txt")

        assert status == 200
        assert body == b"User-agent: *"

    async def test_traversal_is_not_served(self, config: SiteConfig, make_file) -> None:
        make_file("secret.txt", "nope")

        status, body, _ = await _call(_site(config).dev_app(), "/../secret.txt")

        assert status == 404
        assert b"nope" not in body


class TestLifespan:
    async def test_startup_and_shutdown(self, config: SiteConfig) -> None:
        app = _site(config).dev_app()
        incoming = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict] = []

        async def receive() -> dict:
            return incoming.pop(0)

        async def send(message: dict) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)

        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
