"""Plume: multi-language static sites from templates and data functions.

Templates under ``template/pages`` define the pages. Data functions,
registered on a :class:`Site`, produce per-language JSON records. Records
are rendered through a compiled bundle of kida templates into static HTML,
or served live by the development server.

Basic usage::

    from plume import Site, SiteConfig

    site = Site(SiteConfig(languages=("en", "fr")))

    @site.data
    async def get_home_data(language):
        return {"title": "Bonjour" if language == "fr" else "Hello"}

Then from the project directory::

    plume fetch mysite
    plume build mysite
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "CustomData",
    "CustomPage",
    "PlumeError",
    "RequestContext",
    "RouteDefinition",
    "Site",
    "SiteConfig",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import plume`` fast while providing a clean top-level API.
    """
    if name == "Site":
        from plume.site import Site

        return Site

    if name in ("SiteConfig", "CustomData", "CustomPage"):
        from plume import config as _config

        return getattr(_config, name)

    if name in ("RequestContext", "RouteDefinition"):
        from plume.routing import route as _route

        return getattr(_route, name)

    if name == "PlumeError":
        from plume.errors import PlumeError

        return PlumeError

    msg = f"module 'plume' has no attribute {name!r}"
    raise AttributeError(msg)
