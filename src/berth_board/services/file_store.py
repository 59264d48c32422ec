"""Filesystem primitives used for attachment storage.

Each operation runs in a worker thread and is awaited by the caller, so the
event loop is never blocked on disk I/O and every step completes before the
next one starts.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class FileStore:
    """Thin async wrapper over directory and file operations."""

    async def ensure_directory(self, path: Path) -> None:
        """Create the directory and any missing parents; no-op if present."""
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)

    async def write(self, path: Path, data: bytes) -> None:
        """Create or overwrite a file. The parent directory must already exist."""
        logger.debug("Writing %d bytes to %s", len(data), path)
        await asyncio.to_thread(path.write_bytes, data)

    async def rename(self, old_path: Path, new_path: Path) -> None:
        """Move a file within the same volume.

        Raises:
            FileNotFoundError: If ``old_path`` does not exist.
        """
        if old_path == new_path:
            if not await self.exists(old_path):
                raise FileNotFoundError(f"Attachment file not found: {old_path}")
            return
        logger.debug("Renaming %s -> %s", old_path, new_path)
        await asyncio.to_thread(os.replace, old_path, new_path)

    async def delete_if_exists(self, path: Path) -> None:
        """Remove a file, succeeding silently if it is already gone."""
        logger.debug("Deleting %s", path)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    async def delete_tree(self, path: Path) -> None:
        """Recursively remove a directory, succeeding silently if it is absent."""
        if not await self.exists(path):
            return
        logger.debug("Removing directory tree %s", path)
        await asyncio.to_thread(shutil.rmtree, path)

    async def exists(self, path: Path) -> bool:
        """Return True if the path exists."""
        return await asyncio.to_thread(path.exists)


def get_file_store() -> FileStore:
    """Return a file store instance."""
    return FileStore()
