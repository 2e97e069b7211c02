import abc
from typing import List

from userloader.domain.models.common import FilePath


class FileSystem(abc.ABC):
    """Interface for the durable file operations the pipeline needs."""

    @abc.abstractmethod
    async def append_line(self, path: FilePath, line: str) -> None:
        """Appends one line to a file and waits until it is on disk.

        Args:
            path: The path to the file.
            line: The line to append (without trailing newline).

        Raises:
            DurabilityError: If the line could not be written and synced.
        """
        pass

    @abc.abstractmethod
    async def truncate(self, path: FilePath) -> None:
        """Empties a file, creating it if it does not exist."""
        pass

    @abc.abstractmethod
    async def read_lines(self, path: FilePath) -> List[str]:
        """Reads a file and returns its non-empty lines.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        pass
