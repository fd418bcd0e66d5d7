"""Scoped fragments: ``<template>`` blocks whose styles only apply to themselves.

Each ``<template …>…</template>`` in a rendered page becomes a ``<div>``
carrying a unique scope attribute. Every element inside gets the same
attribute, and every selector in the fragment's ``<style>`` blocks is
narrowed to it::

    <template class="card"><style>p { color: red }</style><p>Hi</p></template>

becomes::

    <div data-xy-18f3a2b4c01d2e3f4="" class="card"><style data-xy-…="">
    p[data-xy-18f3a2b4c01d2e3f4] { color: red }</style>
    <p data-xy-18f3a2b4c01d2e3f4="">Hi</p></div>

This is a text rewrite, not an HTML or CSS parser. It covers the fragment
shapes pages actually use; anything it cannot handle is returned untouched.
"""

import logging
import re
import secrets
import time

from plume.errors import TransformError

logger = logging.getLogger("plume.transforms")

# Innermost fragment: a <template> whose body holds no other <template>
_FRAGMENT_RE = re.compile(
    r"<template\b([^>]*)>((?:(?!<template\b|</template>).)*?)</template>", re.S | re.I
)
_STYLE_RE = re.compile(r"<style\b([^>]*)>(.*?)</style>", re.S | re.I)
_RAW_BLOCK_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.S | re.I)
_OPEN_TAG_RE = re.compile(r"<([a-zA-Z][\w:.-]*)([^<>]*)>")
_COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
_KEYFRAME_SELECTOR_RE = re.compile(r"^(?:from|to|\d+(?:\.\d+)?%)$", re.I)

_SKIPPED_TAGS = frozenset({"script", "style", "template"})
# At-rules whose block holds ordinary style rules
_NESTING_AT_RULES = frozenset({"media", "supports", "container", "layer", "document"})
_COMBINATORS = frozenset(">+~")


def _matching_brace(css: str, start: int) -> int:
    """Index of the ``}`` closing the ``{`` at *start*; quoted strings skipped."""
    depth = 0
    quote = ""
    index = start
    while index < len(css):
        char = css[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    raise TransformError(f"unbalanced braces in stylesheet near {css[start:start + 40]!r}")


def _split_top_level(text: str, separator: str) -> list[str]:
    """Split on *separator* outside brackets and parentheses."""
    parts: list[str] = []
    depth = 0
    last = 0
    for index, char in enumerate(text):
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == separator and depth == 0:
            parts.append(text[last:index])
            last = index + 1
    parts.append(text[last:])
    return parts


def _first_compound_end(selector: str) -> int:
    depth = 0
    for index, char in enumerate(selector):
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif depth == 0 and (char.isspace() or char in _COMBINATORS):
            return index
    return len(selector)


def _pseudo_start(compound: str) -> int:
    depth = 0
    for index, char in enumerate(compound):
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == ":" and depth == 0:
            return index
    return len(compound)


class ScopeIsolator:
    """Rewrites ``<template>`` fragments into style-isolated containers.

    Args:
        prefix: Scope token prefix; attributes look like ``data-<prefix>-…``.
        max_depth: Nesting rounds processed before giving up on the rest.
    """

    __slots__ = ("_max_depth", "_prefix", "_scoped_attr_re")

    def __init__(self, prefix: str = "xy", max_depth: int = 10) -> None:
        self._prefix = prefix
        self._max_depth = max_depth
        self._scoped_attr_re = re.compile(
            rf"\[data-(?:v|{re.escape(prefix)})-[\w-]+(?:=[^\]]*)?\]"
        )

    @property
    def prefix(self) -> str:
        return self._prefix

    def new_token(self) -> str:
        """A fresh scope token: millisecond clock plus random hex."""
        return f"{self._prefix}-{time.time_ns() // 1_000_000:x}{secrets.token_hex(3)}"

    def rewrite(self, text: str) -> str:
        """Isolate every ``<template>`` fragment in *text*.

        Text without both an opening and a closing ``template`` tag is
        returned as is. Any internal failure is logged and *text* is
        returned unchanged.
        """
        if not text or "<template" not in text or "</template>" not in text:
            return text
        try:
            return self._rewrite(text)
        except (TransformError, ValueError, re.error) as exc:
            logger.warning("Scope isolation failed, page left unscoped: %s", exc)
            return text

    def _rewrite(self, text: str) -> str:
        for _ in range(self._max_depth):
            text, count = _FRAGMENT_RE.subn(self._replace_fragment, text)
            if not count:
                return text
        if _FRAGMENT_RE.search(text):
            logger.warning(
                "Template fragments nested deeper than %d levels; the rest are left as is",
                self._max_depth,
            )
        return text

    def _replace_fragment(self, match: re.Match[str]) -> str:
        token = self.new_token()
        body = self.scope_markup(match.group(2), token)
        return f'<div data-{token}=""{match.group(1)}>{body}</div>'

    # -- Markup --

    def _is_scoped(self, attrs: str) -> bool:
        return "data-v-" in attrs or f"data-{self._prefix}-" in attrs

    def scope_markup(self, html: str, token: str) -> str:
        """Scope the ``<style>`` blocks and opening tags of a fragment body."""

        def style(match: re.Match[str]) -> str:
            attrs, css = match.group(1), match.group(2)
            if self._is_scoped(attrs):
                return match.group(0)
            return f'<style data-{token}=""{attrs}>{self.scope_css(css, token)}</style>'

        html = _STYLE_RE.sub(style, html)

        # script and style bodies are never tag-rewritten
        raw: list[str] = []

        def stash(match: re.Match[str]) -> str:
            raw.append(match.group(0))
            return f"\x00{len(raw) - 1}\x00"

        html = _RAW_BLOCK_RE.sub(stash, html)

        def tag(match: re.Match[str]) -> str:
            name, attrs = match.group(1), match.group(2)
            if name.lower() in _SKIPPED_TAGS or self._is_scoped(attrs):
                return match.group(0)
            return f'<{name} data-{token}=""{attrs}>'

        html = _OPEN_TAG_RE.sub(tag, html)
        return re.sub(r"\x00(\d+)\x00", lambda m: raw[int(m.group(1))], html)

    # -- Stylesheets --

    def scope_css(self, css: str, token: str) -> str:
        """Narrow every selector in *css* to ``[data-<token>]``."""
        comments: list[str] = []

        def stash(match: re.Match[str]) -> str:
            comments.append(match.group(0))
            return f"\x01{len(comments) - 1}\x01"

        scoped = self._scope_rules(_COMMENT_RE.sub(stash, css), f"[data-{token}]")
        return re.sub(r"\x01(\d+)\x01", lambda m: comments[int(m.group(1))], scoped)

    def _scope_rules(self, css: str, attr: str) -> str:
        out: list[str] = []
        pos = 0
        while pos < len(css):
            brace = css.find("{", pos)
            if brace == -1:
                out.append(css[pos:])
                break
            # Statement at-rules (@import …;) ahead of the next block
            statement_end = css.rfind(";", pos, brace)
            if statement_end != -1:
                out.append(css[pos : statement_end + 1])
                pos = statement_end + 1

            prelude = css[pos:brace]
            close = _matching_brace(css, brace)
            block = css[brace + 1 : close]
            head = prelude.strip()
            if head.startswith("@"):
                name = re.split(r"[\s(]", head[1:], maxsplit=1)[0].lower()
                if name in _NESTING_AT_RULES:
                    block = self._scope_rules(block, attr)
                out.append(f"{prelude}{{{block}}}")
            else:
                out.append(f"{self._scope_selector_list(prelude, attr)}{{{block}}}")
            pos = close + 1
        return "".join(out)

    def _scope_selector_list(self, prelude: str, attr: str) -> str:
        stripped = prelude.strip()
        if not stripped:
            return prelude
        leading = prelude[: len(prelude) - len(prelude.lstrip())]
        trailing = prelude[len(prelude.rstrip()) :]
        selectors = [self.scope_selector(s, attr) for s in _split_top_level(stripped, ",")]
        return f"{leading}{', '.join(selectors)}{trailing}"

    def scope_selector(self, selector: str, attr: str) -> str:
        """Attach *attr* to the first compound of one selector.

        ``.a .b:hover`` -> ``.a[attr] .b:hover``; ``a:hover > b`` ->
        ``a[attr]:hover > b``. Keyframe selectors pass through.
        """
        selector = selector.strip()
        if not selector or _KEYFRAME_SELECTOR_RE.match(selector) or attr in selector:
            return selector
        selector = self._scoped_attr_re.sub("", selector).strip()

        # Comment placeholders in front of the selector are not part of it
        lead = re.match(r"(?:\x01\d+\x01\s*)*", selector)
        prefix, selector = selector[: lead.end()], selector[lead.end() :]
        if not selector:
            return prefix

        end = _first_compound_end(selector)
        compound, rest = selector[:end], selector[end:]
        insert = _pseudo_start(compound)
        return f"{prefix}{compound[:insert]}{attr}{compound[insert:]}{rest}"
