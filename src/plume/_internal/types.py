"""Shared type aliases used across plume modules."""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeAlias

# A single page record or a list of them
PageData: TypeAlias = Mapping[str, Any] | list[Mapping[str, Any]]

# User data function: (language) -> PageData, sync or async
DataFunction: TypeAlias = Callable[[str], PageData | Awaitable[PageData]]

# Compiled render function exported by the bundle
RenderFunction: TypeAlias = Callable[[Mapping[str, Any]], str]

# Zero-argument unit of work for the task pool
Task: TypeAlias = Callable[[], Awaitable[None]]
