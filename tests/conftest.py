import lzma
import os
import shutil
from pathlib import Path
from typing import List

import pytest

from aliacan.backup import BackupManager
from aliacan.compression import Compressor
from aliacan.errors import CompressionError, OperationResult
from aliacan.models import AliasRecord

BASHRC = """# ~/.bashrc
export PATH="$HOME/bin:$PATH"

alias ll='ls -la'
alias gs="git status"
  alias gp = 'git push'   
alias la=ls -A # list all

if [ -f ~/.bash_aliases ]; then
    . ~/.bash_aliases
fi"""


class FakeCompressor(Compressor):
    """xz stand-in that uses the lzma module and records its calls"""

    def __init__(self, fail_on=None):
        self.fail_on = set(fail_on or [])
        self.compressed: List[Path] = []
        self.decompressed: List[Path] = []

    def compress(self, path: Path) -> OperationResult:
        if path.name in self.fail_on:
            return OperationResult.failure(CompressionError(f"Failed to compress backup: {path}"))
        target = self.compressed_path(path)
        with open(path, "rb") as src, lzma.open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
        shutil.copystat(path, target)
        path.unlink()
        self.compressed.append(path)
        return OperationResult.success(target)

    def decompress(self, path: Path) -> OperationResult:
        if path.name in self.fail_on:
            return OperationResult.failure(CompressionError(f"Failed to decompress backup: {path}"))
        target = self.decompressed_path(path)
        with lzma.open(path, "rb") as src, open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
        self.decompressed.append(path)
        return OperationResult.success(target)


@pytest.fixture
def alias() -> AliasRecord:
    return AliasRecord(
        name="aliacan-test-echo",
        command="echo aliacan test working!",
        description="aliacan test shortcut",
        created_at="2025-10-24",
        last_used_at="2025-10-24",
    )


@pytest.fixture
def bashrc_text() -> str:
    return BASHRC


@pytest.fixture
def tracked_file(tmp_path, bashrc_text) -> Path:
    path = tmp_path / "home" / ".bashrc"
    path.parent.mkdir()
    path.write_text(bashrc_text)
    return path


@pytest.fixture
def compressor() -> FakeCompressor:
    return FakeCompressor()


@pytest.fixture
def backup_dir(tmp_path) -> Path:
    return tmp_path / "home" / ".shellbackup"


@pytest.fixture
def manager(tracked_file, compressor) -> BackupManager:
    return BackupManager(tracked_file, compressor=compressor, home=tracked_file.parent)


@pytest.fixture
def make_backups(backup_dir):
    """Create ``count`` raw backups, index 0 being the newest"""

    def _make(count: int, base: str = ".bashrc") -> List[Path]:
        backup_dir.mkdir(parents=True, exist_ok=True)
        paths = []
        for index in range(count):
            # one minute apart, newest first
            minute = 59 - index
            path = backup_dir / f"{base}.bak20250101_12{minute:02d}00"
            path.write_text(f"backup {index}\n")
            mtime = 1735732800 + minute * 60
            os.utime(path, (mtime, mtime))
            paths.append(path)
        return paths

    return _make


@pytest.fixture
def failing_compressor():
    """Build a FakeCompressor that fails for the given file names"""
    return lambda *names: FakeCompressor(fail_on=names)
