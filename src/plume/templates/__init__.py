"""Template discovery and the kida environment.

The pages directory defines the site's pages; every other template under
the template root (layouts, partials) is shared and reachable through
``extends``/``include``.
"""

from plume.templates.environment import create_environment
from plume.templates.registry import TemplateFile, TemplateRegistry

__all__ = [
    "TemplateFile",
    "TemplateRegistry",
    "create_environment",
]
