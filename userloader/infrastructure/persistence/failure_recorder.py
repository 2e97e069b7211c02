"""Durable log of terminally failed jobs.

One ``job_id,error_code`` line per failure, written immediately. The log is
the input for re-running only the failed subset of a run.
"""

import asyncio
import logging
from typing import List

from userloader.domain.interfaces.file_system import FileSystem
from userloader.domain.models.common import ErrorCode, FilePath, JobId

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_LOG = "failures.log"


class FailureRecorder:
    """Appends terminal failures to the failure log as they happen."""

    def __init__(self, file_system: FileSystem, failure_log_path: FilePath):
        self.file_system = file_system
        self.failure_log_path = failure_log_path
        self._write_lock = asyncio.Lock()
        self.recorded = 0

    async def record(self, job_id: JobId, error_code: ErrorCode) -> None:
        """Appends one failure line; returns once it is on disk.

        Raises:
            DurabilityError: If the line could not be written.
        """
        line = f"{job_id},{error_code}"
        async with self._write_lock:
            await self.file_system.append_line(self.failure_log_path, line)
            self.recorded += 1
        logger.debug(f"Recorded failure {line}")

    @staticmethod
    def parse_line(line: str) -> JobId:
        """Extracts the job id from a failure log line.

        The error code is the last comma-separated field; everything before it
        is the job id.
        """
        job_id, sep, _ = line.rpartition(",")
        if not sep or not job_id:
            raise ValueError(f"Malformed failure log line: {line!r}")
        return JobId(job_id)

    async def read_failed_ids(self, path: FilePath) -> List[JobId]:
        """Returns the distinct job ids listed in a failure log, in file order."""
        lines = await self.file_system.read_lines(path)
        seen = set()
        job_ids: List[JobId] = []
        for line in lines:
            try:
                job_id = self.parse_line(line)
            except ValueError as e:
                logger.warning(f"Skipping line in {path}: {e}")
                continue
            if job_id not in seen:
                seen.add(job_id)
                job_ids.append(job_id)
        logger.info(f"Loaded {len(job_ids)} failed job ids from {path}")
        return job_ids
