"""
Local working-tree reader used by the profiler.
"""
import asyncio
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# Pruned during the walk; the profiler filters these anyway
SKIP_DIRS = {".git", "node_modules"}


class FileReader(Protocol):
    async def read_file(self, path: str) -> str: ...

    async def list_files(self) -> list[str]: ...


class LocalFileReader:
    """Reads a checked-out repository from disk. Paths are POSIX and relative to root."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    async def read_file(self, path: str) -> str:
        return await asyncio.to_thread((self.root / path).read_text, encoding="utf-8")

    async def list_files(self) -> list[str]:
        return await asyncio.to_thread(self._walk)

    async def modified_time(self, path: str) -> datetime | None:
        try:
            stat = await asyncio.to_thread((self.root / path).stat)
        except OSError:
            return None
        return datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

    def _walk(self) -> list[str]:
        files = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
            for name in filenames:
                full = Path(dirpath) / name
                files.append(full.relative_to(self.root).as_posix())
        files.sort()
        logger.debug(f"[SCAN] Listed {len(files)} files under {self.root}")
        return files
