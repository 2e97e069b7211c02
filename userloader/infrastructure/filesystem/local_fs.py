"""Concrete implementation of the FileSystem interface for the local disk.

Uses `aiofiles` so that writes do not block the event loop. Appends are a
single write of a complete line followed by flush and fsync, so a line is
either fully on disk when `append_line` returns or the call raises.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import List

import aiofiles

# Domain Layer Imports
from userloader.domain.errors import DurabilityError
from userloader.domain.interfaces.file_system import FileSystem
from userloader.domain.models.common import FilePath

logger = logging.getLogger(__name__)

class LocalFileSystem(FileSystem):
    """Implementation of FileSystem for the local disk."""

    def __init__(self, fsync: bool = True):
        """Initializes the LocalFileSystem adapter.

        Args:
            fsync: Whether to fsync after each append.
        """
        self.fsync = fsync
        logger.info(f"LocalFileSystem initialized (fsync={fsync}).")

    async def append_line(self, path: FilePath, line: str) -> None:
        """Appends one line and waits until it is durably written."""
        file_path = Path(path)
        data = line + "\n"
        logger.debug(f"Appending {len(data)} characters to {file_path}")
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, mode='a', encoding='utf-8') as f:
                await f.write(data)
                await f.flush()
                if self.fsync:
                    await asyncio.to_thread(os.fsync, f.fileno())
        except OSError as e:
            logger.error(f"Error appending to file {file_path}: {e}", exc_info=True)
            raise DurabilityError(str(path), e) from e

    async def truncate(self, path: FilePath) -> None:
        """Empties the file, creating it (and its directory) if needed."""
        file_path = Path(path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, mode='w', encoding='utf-8'):
                pass
            logger.debug(f"Truncated {file_path}")
        except OSError as e:
            logger.error(f"Error truncating file {file_path}: {e}", exc_info=True)
            raise DurabilityError(str(path), e) from e

    async def read_lines(self, path: FilePath) -> List[str]:
        """Reads the non-empty lines of a file."""
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        async with aiofiles.open(file_path, mode='r', encoding='utf-8') as f:
            content = await f.read()
        lines = [line.strip() for line in content.splitlines() if line.strip()]
        logger.debug(f"Read {len(lines)} lines from {file_path}")
        return lines
