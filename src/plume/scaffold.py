"""Data module scaffolding.

Appends a stub for every data function a site needs but its data module
does not define yet: ``init``, ``get_common_data`` and one
``get_<identifier>_data`` per page template. Existing functions are never
touched, so the command is safe to re-run after adding templates.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from plume.templates.registry import COMMON_FUNCTION, INIT_FUNCTION

if TYPE_CHECKING:
    from plume.templates.registry import TemplateRegistry

INIT_STUB = '''
async def init():
    """Runs once before any data function."""
'''

COMMON_STUB = '''
async def get_common_data(language):
    return {}
'''

DATA_STUB = '''
async def {name}(language):
    return {{}}
'''


def defines_function(source: str, name: str) -> bool:
    """Whether *source* defines a module-level function called *name*."""
    pattern = rf"^(?:async\s+)?def\s+{re.escape(name)}\s*\("
    return re.search(pattern, source, re.M) is not None


def missing_stubs(source: str, registry: TemplateRegistry) -> list[tuple[str, str]]:
    """``(name, stub source)`` for every expected function *source* lacks."""
    wanted = [(INIT_FUNCTION, INIT_STUB), (COMMON_FUNCTION, COMMON_STUB)]
    wanted.extend(
        (template.data_function_name, DATA_STUB.format(name=template.data_function_name))
        for template in registry.list_templates()
    )
    return [(name, stub) for name, stub in wanted if not defines_function(source, name)]


def scaffold_data_module(path: str | Path, registry: TemplateRegistry) -> list[str]:
    """Append missing stubs to the data module at *path*, creating it if needed.

    Returns the names of the functions that were added.
    """
    target = Path(path)
    source = target.read_text(encoding="utf-8") if target.is_file() else ""
    stubs = missing_stubs(source, registry)
    if not stubs:
        return []

    text = "".join("\n" + stub for _, stub in stubs)
    if source and not source.endswith("\n"):
        text = "\n" + text
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as handle:
        handle.write(text.lstrip("\n") if not source else text)
    return [name for name, _ in stubs]
