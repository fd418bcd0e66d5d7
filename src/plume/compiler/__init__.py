"""Template compiler adapter: page templates to one render-function bundle."""

from plume.compiler.bundle import Bundle, BundleCompiler, extract_function, load_bundle, minify
from plume.compiler.client import ClientCompiler, KidaClientCompiler

__all__ = [
    "Bundle",
    "BundleCompiler",
    "ClientCompiler",
    "KidaClientCompiler",
    "extract_function",
    "load_bundle",
    "minify",
]
