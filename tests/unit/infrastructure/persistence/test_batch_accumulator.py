import asyncio
import json
from pathlib import Path

import pytest

from userloader.domain.errors import DurabilityError
from userloader.domain.interfaces.file_system import FileSystem
from userloader.domain.models.common import FilePath
from userloader.infrastructure.filesystem.local_fs import LocalFileSystem
from userloader.infrastructure.persistence.batch_accumulator import BatchAccumulator, default_results_path


def _read_batches(path: Path):
    return [json.loads(line) for line in path.read_text().splitlines()]


@pytest.fixture
def results_path(tmp_path: Path) -> Path:
    return tmp_path / "users-list.json"


@pytest.fixture
def accumulator(results_path: Path) -> BatchAccumulator:
    return BatchAccumulator(LocalFileSystem(fsync=False), FilePath(str(results_path)), flush_threshold=3)


@pytest.mark.asyncio
async def test_flush_writes_one_array_per_line(accumulator: BatchAccumulator, results_path: Path):
    accumulator.add({"user_id": "auth0|1", "username": "a@example.com"})
    accumulator.add({"user_id": "auth0|2", "username": "b@example.com"})

    written = await accumulator.flush()
    accumulator.add({"user_id": "auth0|3", "username": "c@example.com"})
    await accumulator.flush()

    assert written == 2
    assert _read_batches(results_path) == [
        [{"user_id": "auth0|1", "username": "a@example.com"}, {"user_id": "auth0|2", "username": "b@example.com"}],
        [{"user_id": "auth0|3", "username": "c@example.com"}],
    ]
    assert accumulator.pending == 0
    assert accumulator.flush_count == 2
    assert accumulator.flushed_results == 3


@pytest.mark.asyncio
async def test_empty_flush_writes_nothing(accumulator: BatchAccumulator, results_path: Path):
    assert await accumulator.flush() == 0
    assert not results_path.exists()
    assert accumulator.flush_count == 0


def test_is_full_at_threshold(accumulator: BatchAccumulator):
    for i in range(2):
        accumulator.add({"user_id": str(i), "username": f"{i}@example.com"})
    assert not accumulator.is_full
    accumulator.add({"user_id": "2", "username": "2@example.com"})
    assert accumulator.is_full


@pytest.mark.asyncio
async def test_adds_during_flush_go_to_next_batch(mocker):
    release = asyncio.Event()
    written = []

    async def slow_append(path, line):
        await release.wait()
        written.append(json.loads(line))

    file_system = mocker.MagicMock(spec=FileSystem)
    file_system.append_line.side_effect = slow_append
    accumulator = BatchAccumulator(file_system, FilePath("results.json"), flush_threshold=10)
    accumulator.add({"user_id": "1", "username": "first"})

    flush_task = asyncio.create_task(accumulator.flush())
    await asyncio.sleep(0.01)
    accumulator.add({"user_id": "2", "username": "second"})
    release.set()
    await flush_task

    assert written == [[{"user_id": "1", "username": "first"}]]
    assert accumulator.pending == 1

    await accumulator.flush()
    assert written[1] == [{"user_id": "2", "username": "second"}]


@pytest.mark.asyncio
async def test_failed_flush_keeps_results(mocker):
    file_system = mocker.MagicMock(spec=FileSystem)
    file_system.append_line = mocker.AsyncMock(side_effect=DurabilityError("results.json", OSError("disk full")))
    accumulator = BatchAccumulator(file_system, FilePath("results.json"))
    accumulator.add({"user_id": "1", "username": "a"})
    accumulator.add({"user_id": "2", "username": "b"})

    with pytest.raises(DurabilityError):
        await accumulator.flush()

    assert accumulator.pending == 2
    assert accumulator.flush_count == 0


def test_threshold_must_be_positive(tmp_path: Path):
    with pytest.raises(ValueError):
        BatchAccumulator(LocalFileSystem(), FilePath(str(tmp_path / "r.json")), flush_threshold=0)


def test_default_results_path_is_timestamped():
    path = default_results_path()
    assert path.startswith("users-list_")
    assert path.endswith(".json")
    assert path[len("users-list_"):-len(".json")].isdigit()
