"""Request resolution: explicit routes first, then the record convention.

Usage::

    resolver = site.resolver()
    resolution = await resolver.resolve("/blog/a.html", "fr", user_agent)
    if resolution.exists:
        ...
"""

from plume.routing.device import classify_device
from plume.routing.resolver import Resolution, Resolver, record_path_for
from plume.routing.route import RequestContext, RouteDefinition

__all__ = [
    "RequestContext",
    "Resolution",
    "Resolver",
    "RouteDefinition",
    "classify_device",
    "record_path_for",
]
