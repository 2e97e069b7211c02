"""Accumulates successful results and flushes them to the results file.

Each flush writes the current batch as one JSON array on a single line, so a
flushed batch is all-or-nothing on disk. The batch is swapped out before the
write is awaited: results added while a flush is in progress go to the next
batch. Flushes themselves are serialized.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, List

from userloader.domain.errors import DurabilityError
from userloader.domain.interfaces.file_system import FileSystem
from userloader.domain.models.common import FilePath

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_THRESHOLD = 100


def default_results_path() -> FilePath:
    """Timestamped results file name, one per run (users-list_<epoch-ms>.json)."""
    return FilePath(f"users-list_{int(time.time() * 1000)}.json")


class BatchAccumulator:
    """Buffers success results and writes them out in batches."""

    def __init__(
        self,
        file_system: FileSystem,
        results_path: FilePath,
        flush_threshold: int = DEFAULT_FLUSH_THRESHOLD,
    ):
        if flush_threshold < 1:
            raise ValueError("flush_threshold must be at least 1.")
        self.file_system = file_system
        self.results_path = results_path
        self.flush_threshold = flush_threshold
        self._batch: List[Dict[str, Any]] = []
        self._flush_lock = asyncio.Lock()
        self.flush_count = 0
        self.flushed_results = 0

    def add(self, result: Dict[str, Any]) -> None:
        """Appends a success result to the current batch."""
        self._batch.append(result)

    @property
    def pending(self) -> int:
        return len(self._batch)

    @property
    def is_full(self) -> bool:
        return len(self._batch) >= self.flush_threshold

    async def flush(self) -> int:
        """Writes the current batch and clears it.

        Returns:
            The number of results written (0 if the batch was empty, in which
            case nothing is written).

        Raises:
            DurabilityError: If the write failed. The unwritten results are put
                back at the front of the current batch.
        """
        async with self._flush_lock:
            if not self._batch:
                logger.debug("Flush skipped: batch is empty.")
                return 0

            batch, self._batch = self._batch, []
            line = json.dumps(batch, default=str)
            logger.info(f"--------flush to {self.results_path}: {len(batch)}---------")
            try:
                await self.file_system.append_line(self.results_path, line)
            except DurabilityError:
                self._batch = batch + self._batch
                raise

            self.flush_count += 1
            self.flushed_results += len(batch)
            return len(batch)
