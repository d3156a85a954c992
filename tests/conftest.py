from __future__ import annotations

import os
from pathlib import Path

import pytest

from shared.config import RevdepsSettings
from shared.logger import RevdepsLogger

from revdeps.core.engine import RevdepsEngine
from tests.elf_builder import needed_elf


@pytest.fixture
def quiet_logger() -> RevdepsLogger:
    return RevdepsLogger("test", console_output=False)


@pytest.fixture
def engine(quiet_logger: RevdepsLogger) -> RevdepsEngine:
    return RevdepsEngine(config=RevdepsSettings(), logger=quiet_logger)


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """A directory with two valid objects, one corrupt ELF and a text file."""
    directory = tmp_path / "bin"
    directory.mkdir()
    (directory / "a.bin").write_bytes(needed_elf("libx.so"))
    (directory / "b.bin").write_bytes(needed_elf("libx.so", "liby.so"))
    (directory / "corrupt.bin").write_bytes(needed_elf("libz.so")[:80])
    (directory / "notes.txt").write_text("not an object\n")
    return directory


@pytest.fixture
def undecodable_dir(tmp_path: Path) -> Path:
    """A directory whose entries have names that are not valid UTF-8."""
    directory = tmp_path / "undecodable"
    directory.mkdir()
    try:
        (directory / os.fsdecode(b"bad\xffname")).write_bytes(needed_elf("liby.so"))
        (directory / os.fsdecode(b"junk\xfe.txt")).write_text("not an object\n")
    except (OSError, UnicodeError):
        pytest.skip("filesystem rejects non-UTF-8 file names")
    return directory
