"""Recursive dictionary merge used for common page data."""

from collections.abc import Mapping
from typing import Any


def deep_merge(base: Mapping[str, Any] | None, *overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *overrides* into a copy of *base*, recursing into nested dicts.

    Later mappings win for non-dict values. ``None`` arguments are skipped,
    so optional sources can be passed straight through::

        >>> deep_merge({"lang": {"a": 1}}, {"lang": {"b": 2}})
        {'lang': {'a': 1, 'b': 2}}
    """
    result: dict[str, Any] = dict(base or {})
    for override in overrides:
        if not override:
            continue
        for key, value in override.items():
            current = result.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                result[key] = deep_merge(current, value)
            else:
                result[key] = value
    return result
