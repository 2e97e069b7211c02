from pathlib import Path

import pytest

from userloader.domain.errors import DurabilityError
from userloader.domain.models.common import FilePath
from userloader.infrastructure.filesystem.local_fs import LocalFileSystem


@pytest.fixture
def file_system():
    return LocalFileSystem()


@pytest.mark.asyncio
async def test_append_line_creates_and_appends(file_system: LocalFileSystem, tmp_path: Path):
    target = tmp_path / "out" / "failures.log"

    await file_system.append_line(FilePath(str(target)), "a@example.com,429")
    await file_system.append_line(FilePath(str(target)), "b@example.com,500")

    assert target.read_text() == "a@example.com,429\nb@example.com,500\n"


@pytest.mark.asyncio
async def test_truncate_empties_existing_file(file_system: LocalFileSystem, tmp_path: Path):
    target = tmp_path / "failures.log"
    target.write_text("old,429\n")

    await file_system.truncate(FilePath(str(target)))

    assert target.exists()
    assert target.read_text() == ""


@pytest.mark.asyncio
async def test_read_lines_skips_blank_lines(file_system: LocalFileSystem, tmp_path: Path):
    target = tmp_path / "failures.log"
    target.write_text("a,429\n\n  \nb,500\n")

    assert await file_system.read_lines(FilePath(str(target))) == ["a,429", "b,500"]


@pytest.mark.asyncio
async def test_read_lines_missing_file(file_system: LocalFileSystem, tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        await file_system.read_lines(FilePath(str(tmp_path / "nope.log")))


@pytest.mark.asyncio
async def test_append_to_directory_raises_durability_error(file_system: LocalFileSystem, tmp_path: Path):
    with pytest.raises(DurabilityError) as exc_info:
        await file_system.append_line(FilePath(str(tmp_path)), "line")
    assert exc_info.value.path == str(tmp_path)
    assert isinstance(exc_info.value.original_exception, OSError)
