"""Text passes applied to rendered pages.

Both passes are total: an internal failure is logged and the input is
returned unchanged, so rendering never aborts here.
"""

from plume.transforms.macros import expand_macros
from plume.transforms.scope import ScopeIsolator

__all__ = [
    "ScopeIsolator",
    "expand_macros",
]
