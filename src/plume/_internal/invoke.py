"""Invoke helpers: call sync or async user functions uniformly.

Data functions, route callables and the init hook can be ``def`` or
``async def``. Any code that calls a user-provided function goes through
this helper so the sync/async check lives in exactly one place.

Usage::

    from plume._internal.invoke import invoke

    result = await invoke(get_home_data, "en")
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a function and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync: returns immediately
        def get_home_data(language):
            return {"title": language}

        # async: returns coroutine, awaited automatically
        async def get_blog_data(language):
            return await fetch_posts(language)
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
