"""Development server: live rendering through the resolver."""

from plume.server.app import DevApp
from plume.server.dev import run_dev_server

__all__ = [
    "DevApp",
    "run_dev_server",
]
