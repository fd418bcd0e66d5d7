"""Route definitions and the context they are evaluated against."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import SplitResult


@dataclass(frozen=True, slots=True)
class RequestContext:
    """What a route callable sees for one request.

    Attributes:
        url: The full request URL, split.
        language: Language the page is rendered in.
        device: ``"pc"``, ``"ipad"``, ``"mobile"`` or ``"unknown"``.
        data_lookup: Async callable loading a persisted record of
            ``language`` by relative path (``await ctx.data_lookup("blog/a")``).
    """

    url: SplitResult
    language: str
    device: str
    data_lookup: Callable[[str], Awaitable[Any]]

    @property
    def path(self) -> str:
        return self.url.path or "/"


@dataclass(frozen=True, slots=True)
class RouteDefinition:
    """An explicit route: a predicate plus how to get its template and data.

    Routes are tried in declaration order and the first match wins. A route
    listed after a broader one is never reached; that is not checked.

    Attributes:
        match: ``(ctx) -> bool``.
        get_data: ``(ctx) -> data``; sync or async.
        get_template_id: ``(ctx) -> canonical id``; sync or async.
        name: Optional label for logs and ``plume routes``.
    """

    match: Callable[[RequestContext], bool]
    get_data: Callable[[RequestContext], Any]
    get_template_id: Callable[[RequestContext], Any]
    name: str | None = None
