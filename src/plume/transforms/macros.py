"""Macro expansion over rendered HTML.

A small text language that runs after the template engine, for fragments
that are repeated or filled in late (edge-side includes and ad slots)::

    <p>^^title^^</p>
    <esi:for key="items" start="0" end="3" index_floor="1">
      <li data-i="^^index^^">^^name^^</li>
    </esi:for>

``^^key^^`` is also accepted as ``^^esi:key^^``. ``for`` blocks cannot be
nested.
"""

import functools
import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from plume.errors import TransformError

logger = logging.getLogger("plume.transforms")

_ATTR_RE = re.compile(r'(\w+)="(-?\w+)"')


@functools.lru_cache(maxsize=8)
def _patterns(tag: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    name = re.escape(tag)
    variable = re.compile(rf"\^\^(?:{name}:)?(.*?)\^\^")
    block = re.compile(rf"<{name}:for(.*?)>(.*?)</{name}:for>", re.S)
    return variable, block


def format_value(value: Any) -> str:
    """Render a value for attribute-safe inclusion in HTML."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False).replace('"', "&quot;")
    return str(value)


def _substitute(pattern: re.Pattern[str], text: str, data: Mapping[str, Any]) -> str:
    return pattern.sub(lambda m: format_value(data.get(m.group(1).strip())), text)


def _int_attr(attrs: Mapping[str, str], name: str) -> int | None:
    if name not in attrs:
        return None
    try:
        return int(attrs[name])
    except ValueError:
        raise TransformError(f"{name}={attrs[name]!r} is not an integer") from None


def _expand_block(
    variable: re.Pattern[str], attr_text: str, body: str, data: Mapping[str, Any]
) -> str:
    attrs = dict(_ATTR_RE.findall(attr_text))
    key = attrs.get("key")
    if not key:
        raise TransformError(f"for block without a key attribute: {attr_text.strip()!r}")
    items = data.get(key)
    if not isinstance(items, list):
        raise TransformError(f"for block key {key!r} is not a list")

    floor = _int_attr(attrs, "index_floor") or 0
    sliced = items[_int_attr(attrs, "start") : _int_attr(attrs, "end")]
    out = []
    for position, item in enumerate(sliced):
        if not isinstance(item, Mapping):
            raise TransformError(f"element {position} of {key!r} is not an object")
        out.append(_substitute(variable, body, {**item, "index": position + floor}))
    return "".join(out)


def expand_macros(text: str, data: Mapping[str, Any] | None, tag: str = "esi") -> str:
    """Expand ``for`` blocks, then substitute ``^^key^^`` variables.

    Blocks are expanded left to right and spliced back into the text; the
    variable pass then runs once over the whole result. On any failure the
    error is logged and *text* is returned unchanged.
    """
    if not text or ("^^" not in text and f"<{tag}:for" not in text):
        return text
    data = data if isinstance(data, Mapping) else {}
    variable, block = _patterns(tag)

    try:
        parts: list[str] = []
        current = 0
        for match in block.finditer(text):
            parts.append(text[current : match.start()])
            parts.append(_expand_block(variable, match.group(1), match.group(2), data))
            current = match.end()
        parts.append(text[current:])
        return _substitute(variable, "".join(parts), data)
    except (TransformError, TypeError, ValueError) as exc:
        logger.warning("Macro expansion failed, page left unexpanded: %s", exc)
        return text
