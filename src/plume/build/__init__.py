"""Site builds: static HTML per language, or a deployable function bundle."""

from plume.build.functions import FunctionBuilder
from plume.build.static import BuildReport, StaticBuilder

__all__ = [
    "BuildReport",
    "FunctionBuilder",
    "StaticBuilder",
]
