"""Line-oriented access to a shell startup file"""

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import List

from aliacan.codec import AliasRecordCodec
from aliacan.errors import NotFoundError, OperationResult, StorageIOError, ValidationError
from aliacan.models import AliasRecord, ShellDialect

logger = logging.getLogger(__name__)

FILE_MODE = 0o644

# Startup files are not guaranteed to be UTF-8; undecodable bytes are carried through unchanged
ENCODING = "utf-8"
ERRORS = "surrogateescape"


def _line_ending(lines: List[str]) -> str:
    """CR suffix for files that use CRLF line endings"""
    return "\r" if any(line.endswith("\r") for line in lines) else ""


class ConfigStore:
    """Read and rewrite the alias lines of one startup file"""

    def __init__(self, path: Path, dialect: ShellDialect = ShellDialect.POSIX_EQUALS):
        self.path = Path(path)
        self.codec = AliasRecordCodec(dialect)

    def exists(self) -> bool:
        return self.path.exists()

    def read_lines(self) -> List[str]:
        """Lines split on LF only.

        A CR before the LF stays part of its line and a final newline shows up
        as a trailing empty string, so joining with LF gives back the same bytes.
        """
        with open(self.path, "r", encoding=ENCODING, errors=ERRORS, newline="") as f:
            return f.read().split("\n")

    def write_lines(self, lines: List[str]) -> OperationResult:
        """Replace the file contents; readers see either the old or the new file"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding=ENCODING, errors=ERRORS, newline="") as f:
                f.write("\n".join(lines))
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return OperationResult.failure(StorageIOError(f"Cannot write {self.path}: {e}"))

        self.set_permissions()
        return OperationResult.success(self.path)

    def ensure_exists(self) -> bool:
        if self.path.exists():
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch()
        except OSError:
            return False
        self.set_permissions()
        return True

    def set_permissions(self) -> bool:
        """Owner read/write, everyone else read only"""
        try:
            os.chmod(self.path, FILE_MODE)
            return True
        except OSError:
            return False

    def check_permissions(self) -> bool:
        try:
            mode = self.path.stat().st_mode
        except OSError:
            return False
        return bool(mode & stat.S_IRUSR) and bool(mode & stat.S_IWUSR)

    def load_aliases(self) -> OperationResult:
        """Parse every alias line; value is a list of AliasRecord"""
        if not self.exists():
            return OperationResult.failure(NotFoundError(f"Config file does not exist: {self.path}"))
        try:
            lines = self.read_lines()
        except OSError as e:
            return OperationResult.failure(StorageIOError(f"Cannot read {self.path}: {e}"))

        aliases = []
        for line in lines:
            if not self.codec.is_alias_line(line):
                continue
            record = self.codec.parse_line(line)
            if record is not None and record.name:
                aliases.append(record)
        return OperationResult.success(aliases)

    def _validate(self, record: AliasRecord) -> OperationResult:
        if not self.codec.validate_name(record.name):
            return OperationResult.failure(ValidationError(f"Invalid alias name: {record.name!r}"))
        if not self.codec.validate_command(record.command):
            return OperationResult.failure(ValidationError(f"Invalid command for alias {record.name!r}"))
        return OperationResult.success()

    def _defines(self, line: str, name: str) -> bool:
        if not self.codec.is_alias_line(line):
            return False
        record = self.codec.parse_line(line)
        return record is not None and record.name == name

    def add_alias(self, record: AliasRecord) -> OperationResult:
        checked = self._validate(record)
        if not checked:
            return checked
        if not self.ensure_exists():
            return OperationResult.failure(StorageIOError(f"Cannot create config file: {self.path}"))

        try:
            lines = self.read_lines()
        except OSError as e:
            return OperationResult.failure(StorageIOError(f"Cannot read {self.path}: {e}"))
        if any(self._defines(line, record.name) for line in lines):
            return OperationResult.failure(ValidationError(f"Alias already exists: {record.name}"))

        ending = _line_ending(lines)
        formatted = self.codec.format(record)
        if lines[-1] == "":
            # keep the final newline last
            lines.insert(len(lines) - 1, formatted + ending)
        else:
            lines[-1] += ending
            lines.append(formatted)
        logger.info("adding alias %s to %s", record.name, self.path)
        return self.write_lines(lines)

    def remove_alias(self, name: str) -> OperationResult:
        if not self.exists():
            return OperationResult.failure(NotFoundError(f"Config file does not exist: {self.path}"))
        try:
            lines = self.read_lines()
        except OSError as e:
            return OperationResult.failure(StorageIOError(f"Cannot read {self.path}: {e}"))

        kept = [line for line in lines if not self._defines(line, name)]
        if len(kept) == len(lines):
            return OperationResult.failure(NotFoundError(f"Alias not found: {name}"))

        logger.info("removing alias %s from %s", name, self.path)
        return self.write_lines(kept)

    def update_alias(self, record: AliasRecord) -> OperationResult:
        """Rewrite the first line defining ``record.name`` in place"""
        checked = self._validate(record)
        if not checked:
            return checked
        if not self.exists():
            return OperationResult.failure(NotFoundError(f"Config file does not exist: {self.path}"))
        try:
            lines = self.read_lines()
        except OSError as e:
            return OperationResult.failure(StorageIOError(f"Cannot read {self.path}: {e}"))

        for index, line in enumerate(lines):
            if self._defines(line, record.name):
                indent = line[: len(line) - len(line.lstrip(" \t"))]
                ending = "\r" if line.endswith("\r") else ""
                lines[index] = indent + self.codec.format(record) + ending
                logger.info("updating alias %s in %s", record.name, self.path)
                return self.write_lines(lines)

        return OperationResult.failure(NotFoundError(f"Alias not found: {record.name}"))
