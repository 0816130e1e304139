"""
Local side of the mirror: directory listings, album directory renames and
streamed writes of downloaded media.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterable
from pathlib import Path

import aiofiles

log = logging.getLogger(__name__)

PART_SUFFIX = ".part"


def part_path(path: Path) -> Path:
    """Hidden sibling used while a file is still being written."""
    return path.with_name(f".{path.name}{PART_SUFFIX}")


class LocalMediaStore:
    """
    Filesystem operations used by the album sync engine. Blocking calls run in
    a worker thread so they do not stall concurrent downloads.
    """

    async def list_entries(self, dir_path: Path) -> set[str]:
        """
        Returns the file names in ``dir_path``, leaving out unfinished
        downloads. A missing directory lists as empty.
        """

        def _list() -> set[str]:
            try:
                names = os.listdir(dir_path)
            except FileNotFoundError:
                return set()
            return {name for name in names if not name.endswith(PART_SUFFIX)}

        return await asyncio.to_thread(_list)

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.exists)

    async def ensure_dir(self, path: Path) -> None:
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)

    async def rename(self, old_path: Path, new_path: Path) -> None:
        log.debug(f"Renaming '{old_path}' -> '{new_path}'")
        await asyncio.to_thread(os.rename, old_path, new_path)

    async def write_stream(
        self, path: Path, byte_source: AsyncIterable[bytes]
    ) -> int:
        """
        Writes an async byte stream to ``path`` and returns the number of bytes
        written. Data goes to a ``.part`` file first and is moved into place
        only once the stream is exhausted.
        """
        tmp_path = part_path(path)
        written = 0
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                async for chunk in byte_source:
                    await f.write(chunk)
                    written += len(chunk)
            await asyncio.to_thread(os.replace, tmp_path, path)
        except BaseException:
            await asyncio.to_thread(tmp_path.unlink, missing_ok=True)
            raise
        return written
