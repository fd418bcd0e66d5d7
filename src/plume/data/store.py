"""On-disk store of persisted data records.

Records live at ``<data_dir>/<language>/<relative path>.json``. The store is
the handoff point between data acquisition and rendering: the scheduler
writes it, the resolver and static builder read it. Writes are not locked;
overlapping runs against the same tree must be serialized by the caller.
"""

import json
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import anyio

from plume.templates.registry import normalize_path

COMMON_RECORD = "_common.json"


def _with_json_suffix(relative: str) -> str:
    relative = normalize_path(relative)
    if not relative.endswith(".json"):
        relative += ".json"
    return relative


class RecordStore:
    """Reads and writes JSON records under a data root."""

    __slots__ = ("_root",)

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, language: str, relative: str) -> Path:
        """Absolute path of the record *relative* for *language*."""
        return self._root / language / _with_json_suffix(relative)

    async def write(self, language: str, relative: str, data: Any) -> Path:
        """Replace the record at *relative* with *data*, creating directories."""
        target = anyio.Path(self.path_for(language, relative))
        await target.parent.mkdir(parents=True, exist_ok=True)
        await target.unlink(missing_ok=True)
        await target.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return Path(target)

    async def read(self, language: str, relative: str) -> Any:
        """Load a record.

        Raises:
            FileNotFoundError: If the record does not exist.
        """
        target = anyio.Path(self.path_for(language, relative))
        if not await target.is_file():
            raise FileNotFoundError(f"No data record at {target}")
        return json.loads(await target.read_text(encoding="utf-8"))

    async def find(self, language: str, relative: str) -> Any | None:
        """Load a record, or return ``None`` when it does not exist."""
        try:
            return await self.read(language, relative)
        except FileNotFoundError:
            return None

    def lookup(self, language: str) -> Callable[[str], Awaitable[Any]]:
        """Async reader bound to *language*: ``await lookup("blog/a")``."""

        async def data_lookup(relative: str) -> Any:
            return await self.read(language, relative)

        return data_lookup

    async def write_common(self, language: str, data: Any) -> Path:
        return await self.write(language, COMMON_RECORD, data)

    async def read_common(self, language: str) -> dict[str, Any]:
        """Load ``_common.json`` for *language*; missing means empty."""
        data = await self.find(language, COMMON_RECORD)
        return data if isinstance(data, dict) else {}

    def list_records(self, language: str) -> list[str]:
        """Relative paths of every page record for *language*, sorted.

        ``_common.json`` is excluded.
        """
        base = self._root / language
        if not base.is_dir():
            return []
        return sorted(
            item.relative_to(base).as_posix()
            for item in base.rglob("*.json")
            if item.is_file() and item.name != COMMON_RECORD
        )

    async def clear(self) -> None:
        """Remove the whole data tree."""
        await anyio.to_thread.run_sync(shutil.rmtree, self._root, True)

    async def clear_language(self, language: str) -> None:
        """Remove one language's subtree."""
        await anyio.to_thread.run_sync(shutil.rmtree, self._root / language, True)
