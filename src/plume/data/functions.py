"""Explicit registration map for data functions.

Data functions are registered once at startup, either one by one or by
collecting a data module's ``get_*_data`` functions. Lookups never guess
at call time: a name that was not registered is a
:class:`~plume.errors.MissingFunctionError`.
"""

import inspect
from collections.abc import Callable, Iterator
from types import ModuleType
from typing import Any

from plume.errors import ConfigurationError, MissingFunctionError
from plume.templates.registry import COMMON_FUNCTION, INIT_FUNCTION


def is_data_function_name(name: str) -> bool:
    return name.startswith("get_") and name.endswith("_data") and len(name) > len("get__data")


def accepts_data_lookup(func: Callable[..., Any]) -> bool:
    """Whether *func* takes a ``data_lookup`` keyword (by name or ``**kwargs``)."""
    try:
        parameters = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    return any(
        p.name == "data_lookup" or p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters
    )


class DataFunctions:
    """Name -> callable map for data functions plus the optional init hook."""

    __slots__ = ("_frozen", "_functions", "_init")

    def __init__(self) -> None:
        self._functions: dict[str, Callable[..., Any]] = {}
        self._init: Callable[[], Any] | None = None
        self._frozen = False

    def register(self, name: str, func: Callable[..., Any], *, replace: bool = False) -> None:
        """Register *func* under *name*.

        Raises:
            ConfigurationError: If the map is frozen, *func* is not callable,
                or *name* is already taken and ``replace`` is false.
        """
        if self._frozen:
            msg = f"Cannot register data function {name!r} after the site is frozen."
            raise ConfigurationError(msg)
        if not callable(func):
            msg = f"Data function {name!r} is not callable: {func!r}"
            raise ConfigurationError(msg)
        if name in self._functions and not replace:
            msg = f"Data function {name!r} is already registered"
            raise ConfigurationError(msg)
        self._functions[name] = func

    def set_init(self, func: Callable[[], Any]) -> None:
        if self._frozen:
            raise ConfigurationError("Cannot set the init hook after the site is frozen.")
        self._init = func

    def register_module(self, module: ModuleType) -> int:
        """Register every ``get_*_data`` function (and ``init``) defined in *module*.

        Returns the number of data functions registered.
        """
        count = 0
        for name, obj in vars(module).items():
            if not inspect.isfunction(obj) and not inspect.iscoroutinefunction(obj):
                continue
            if name == INIT_FUNCTION:
                self.set_init(obj)
            elif is_data_function_name(name):
                self.register(name, obj, replace=True)
                count += 1
        return count

    def freeze(self) -> None:
        self._frozen = True

    @property
    def init(self) -> Callable[[], Any] | None:
        return self._init

    @property
    def has_common(self) -> bool:
        return COMMON_FUNCTION in self._functions

    def get(self, name: str) -> Callable[..., Any]:
        """Return the function registered as *name*.

        Raises:
            MissingFunctionError: If nothing is registered under *name*.
        """
        try:
            return self._functions[name]
        except KeyError:
            raise MissingFunctionError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)
