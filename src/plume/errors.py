"""Plume exception hierarchy.

Shared across the registry, scheduler, compiler, resolver and builders so
every module raises and catches the same types. Filesystem failures use the
built-in ``OSError`` family and are not wrapped.
"""


class PlumeError(Exception):
    """Base for all plume-specific errors."""


class ConfigurationError(PlumeError):
    """Raised when site configuration or registration is invalid.

    Typically raised during ``Site.freeze()`` or by ``SiteConfig.validate()``.
    """


class ValidationError(PlumeError):
    """A data function returned data of the wrong shape.

    Aborts the whole fetch run.
    """

    def __init__(self, language: str, function_name: str, detail: str) -> None:
        self.language = language
        self.function_name = function_name
        self.detail = detail
        super().__init__(f"{language} {function_name}: {detail}")


class MissingFunctionError(PlumeError):
    """A required data function is not registered."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        super().__init__(detail or f"Data function {name!r} is not registered")


class CompileError(PlumeError):
    """Template compilation or bundle minification failed."""

    def __init__(self, template: str | None, detail: str) -> None:
        self.template = template
        self.detail = detail
        if template:
            super().__init__(f"{template}: {detail}")
        else:
            super().__init__(detail)


class ResolutionError(PlumeError):
    """No template exists at the resolved path.

    Caught by the dev server and shown as a "template not found" page.
    """

    def __init__(self, template_path: str) -> None:
        self.template_path = template_path
        super().__init__(f"Template not found: {template_path}")


class TransformError(PlumeError):
    """An output pass failed internally.

    Never escapes the pass: the pass logs it and returns its input.
    """
