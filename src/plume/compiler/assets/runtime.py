"""Runtime shared by every function in a compiled page bundle.

Copied verbatim to the top of the bundle. Page functions call ``_render``
with their embedded template source; shared layouts and partials are
installed by ``_configure`` before any page renders. A bundle configured
with a scope ``(prefix, max_depth)`` runs the scope-isolation pass over
every page it renders, which needs ``plume`` importable where it runs.
"""

import json as _json

from kida import DictLoader as _DictLoader
from kida import Environment as _Environment
from kida import Markup as _Markup

_SOURCES = {}
_ENV = None
_SCOPE = None


def _to_json(value):
    return _Markup(_json.dumps(value, ensure_ascii=False))


def _configure(autoescape, shared, scope=None):
    global _ENV, _SCOPE
    _SOURCES.update(shared)
    _ENV = _Environment(loader=_DictLoader(_SOURCES), autoescape=autoescape)
    _ENV.update_filters({"to_json": _to_json})
    if scope is not None:
        from plume.transforms.scope import ScopeIsolator

        _SCOPE = ScopeIsolator(*scope)


def _render(name, source, locals):
    if _ENV is None:
        _configure(True, {})
    _SOURCES.setdefault(name, source)
    html = _ENV.get_template(name).render(dict(locals))
    if _SCOPE is not None:
        html = _SCOPE.rewrite(html)
    return html
