"""Compression backends for rotated backups"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from aliacan.errors import CompressionError, OperationResult
from aliacan.models import COMPRESSED_SUFFIX

logger = logging.getLogger(__name__)


# Backend Interface
class Compressor(ABC):
    suffix = COMPRESSED_SUFFIX

    @abstractmethod
    def compress(self, path: Path) -> OperationResult:
        """Replace ``path`` with ``path + suffix``. Value is the new path."""
        ...

    @abstractmethod
    def decompress(self, path: Path) -> OperationResult:
        """Write the uncompressed sibling of ``path``, keeping ``path``.

        Value is the uncompressed path. An existing sibling is overwritten.
        """
        ...

    def compressed_path(self, path: Path) -> Path:
        return path.with_name(path.name + self.suffix)

    def decompressed_path(self, path: Path) -> Path:
        return path.with_name(path.name[: -len(self.suffix)])


# xz command line backend
class XzCompressor(Compressor):
    """Runs the ``xz`` executable.

    Paths are passed as separate arguments, never through a shell. There is
    no timeout: a hung ``xz`` blocks the caller.
    """

    def __init__(self, executable: str = "xz"):
        self.executable = executable

    def _run(self, args) -> OperationResult:
        cmd = [self.executable, *args]
        logger.debug("running %s", cmd)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            return OperationResult.failure(CompressionError(f"Compression tool not found: {self.executable}"))
        except OSError as e:
            return OperationResult.failure(CompressionError(f"Failed to run {self.executable}: {e}"))

        if result.returncode != 0:
            detail = result.stderr.strip()
            msg = f"{self.executable} exited with status {result.returncode}"
            if detail:
                msg += f": {detail}"
            return OperationResult.failure(CompressionError(msg))
        return OperationResult.success()

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def compress(self, path: Path) -> OperationResult:
        result = self._run(["-9e", "--", str(path)])
        if not result:
            return OperationResult.failure(CompressionError(f"Failed to compress backup: {path} ({result.message})"))
        return OperationResult.success(self.compressed_path(path))

    def decompress(self, path: Path) -> OperationResult:
        result = self._run(["-d", "-k", "-f", "--", str(path)])
        if not result:
            return OperationResult.failure(CompressionError(f"Failed to decompress backup: {path} ({result.message})"))
        return OperationResult.success(self.decompressed_path(path))


COMPRESSORS = {
    "xz": XzCompressor,
}


def get_compressor(name: str = "xz") -> Compressor:
    """Look up a compressor by its config name"""
    try:
        return COMPRESSORS[name]()
    except KeyError:
        raise ValueError(f"Unknown compressor: {name}")
