"""Development server.

Starts uvicorn with the live DevApp object. uvicorn is an optional
dependency (``pip install plume-site[server]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plume.server.app import DevApp


def run_dev_server(app: DevApp, host: str, port: int, *, log_level: str = "info") -> None:
    """Serve *app* until interrupted.

    Raises:
        ModuleNotFoundError: If uvicorn is not installed.
    """
    import uvicorn

    uvicorn.run(app, host=host, port=port, log_level=log_level, lifespan="on")
