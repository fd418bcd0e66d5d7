"""kida as the external template compiler.

The bundle compiler treats the template engine as a black box with one
contract: template source in, generated Python source out, containing a
``def <name>(locals):`` function. This module fulfils that contract with
kida. The source is compiled once here so syntax errors surface at build
time, then embedded in a render function that the bundle runtime executes.
"""

from typing import Protocol

from kida import DictLoader, Environment, TemplateError

from plume.errors import CompileError


class ClientCompiler(Protocol):
    """Anything that turns template source into render-function source."""

    def compile_client(self, source: str, *, name: str, template_name: str) -> str: ...


class KidaClientCompiler:
    """Compile kida template source into a standalone render function.

    Usage::

        compiler = KidaClientCompiler(shared={"layouts/base.html": "..."})
        code = compiler.compile_client(source, name="home", template_name="pages/home.html")
    """

    __slots__ = ("_autoescape", "_shared")

    def __init__(self, *, autoescape: bool = True, shared: dict[str, str] | None = None) -> None:
        self._autoescape = autoescape
        self._shared = dict(shared or {})

    def _environment(self, template_name: str, source: str) -> Environment:
        return Environment(
            loader=DictLoader({**self._shared, template_name: source}),
            autoescape=self._autoescape,
        )

    def compile_client(self, source: str, *, name: str, template_name: str) -> str:
        """Return generated module source defining ``def <name>(locals)``.

        Raises:
            CompileError: If kida rejects the template.
        """
        env = self._environment(template_name, source)
        try:
            env.get_template(template_name)
        except TemplateError as exc:
            raise CompileError(template_name, f"kida compilation failed: {exc}") from exc

        return (
            f'"""Generated from {template_name}."""\n'
            "\n"
            f"def {name}(locals):\n"
            f"    return _render({template_name!r}, {source!r}, locals)\n"
        )
