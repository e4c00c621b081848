"""Timestamped, rotating backups of a tracked shell startup file"""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from aliacan.compression import Compressor, XzCompressor
from aliacan.errors import AliacanError, NotFoundError, OperationResult, StorageIOError
from aliacan.models import BackupEntry

logger = logging.getLogger(__name__)

BACKUP_DIR_NAME = ".shellbackup"
DEFAULT_MAX_BACKUPS = 20
KEEP_UNCOMPRESSED = 10
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class BackupManager:
    """Create, rotate and restore backups of one tracked file.

    Backups are named ``<basename>.bak<YYYYMMDD_HHMMSS>``. Ranked newest
    first by modification time, the 10 newest stay as they are, the rest up to
    ``max_backups`` are compressed in place and anything older is deleted.

    Every operation returns an ``OperationResult``. The message of the most
    recent failure is also kept in ``last_error``; that slot is not safe to
    share between threads.
    """

    def __init__(
        self,
        tracked_path: Path,
        backup_dir: Optional[Path] = None,
        compressor: Optional[Compressor] = None,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        home: Optional[Path] = None,
    ):
        self.tracked_path = Path(tracked_path)
        self.backup_dir = Path(backup_dir) if backup_dir else None
        self.compressor = compressor or XzCompressor()
        self.max_backups = max_backups
        self.home = Path(home) if home else None
        self.last_error = ""

    def _fail(self, error: AliacanError) -> OperationResult:
        self.last_error = error.message
        logger.warning(error.message)
        return OperationResult.failure(error)

    def _home_dir(self) -> Optional[Path]:
        if self.home is not None:
            return self.home
        try:
            home = Path.home()
        except (RuntimeError, KeyError):
            return None
        # older Pythons hand back "~" unexpanded when HOME is unset
        return home if home.is_absolute() else None

    def get_tracked_path(self) -> Path:
        return self.tracked_path

    def get_backup_base_name(self) -> str:
        return f"{self.tracked_path.name}.bak"

    def get_backup_directory(self) -> Path:
        """Resolve where backups live.

        Prefers ``~/.shellbackup`` (created with mode 0700 on first use) and
        falls back to the tracked file's directory when the home directory is
        unknown or the preferred directory cannot be created.
        """
        fallback = self.tracked_path.parent
        if self.backup_dir is not None:
            target = self.backup_dir
        else:
            home = self._home_dir()
            if home is None:
                return fallback
            target = home / BACKUP_DIR_NAME

        try:
            if not target.exists():
                target.mkdir(parents=True)
                target.chmod(0o700)
            return target
        except OSError as e:
            self.last_error = f"Failed to create backup directory: {e}"
            logger.warning(self.last_error)
            return fallback

    def _timestamp(self) -> str:
        return datetime.now().strftime(TIMESTAMP_FORMAT)

    def create_backup(self) -> OperationResult:
        """Copy the tracked file into the backup directory, then rotate.

        The value of a successful result is the new backup path.
        """
        if not self.tracked_path.exists():
            return self._fail(NotFoundError(f"Original file does not exist: {self.tracked_path}"))

        backup_path = self.get_backup_directory() / f"{self.get_backup_base_name()}{self._timestamp()}"
        try:
            # copyfile, not copy2: the backup's mtime must be the time it was taken
            shutil.copyfile(self.tracked_path, backup_path)
        except OSError as e:
            return self._fail(StorageIOError(f"Failed to create backup: {e}"))

        logger.info("created backup %s", backup_path)
        self.cleanup_and_compress_old_backups(self.max_backups)
        return OperationResult.success(backup_path)

    def list_backups(self) -> List[BackupEntry]:
        """Backups of the tracked file, in no particular order"""
        pattern = self.get_backup_base_name()
        entries = []
        try:
            for path in self.get_backup_directory().iterdir():
                if not path.is_file() or pattern not in path.name:
                    continue
                try:
                    entries.append(BackupEntry.from_path(path))
                except OSError:
                    logger.debug("skipping unreadable backup %s", path)
        except OSError as e:
            self.last_error = f"Failed to list backups: {e}"
            logger.warning(self.last_error)
        return entries

    def sorted_backups(self) -> List[BackupEntry]:
        """Backups newest first; equal mtimes fall back to name order"""
        return sorted(self.list_backups(), key=lambda e: (e.modified_at, e.path.name), reverse=True)

    def get_last_backup_path(self) -> Optional[Path]:
        backups = self.sorted_backups()
        return backups[0].path if backups else None

    def cleanup_and_compress_old_backups(self, max_backups: Optional[int] = None) -> int:
        """Apply the rotation policy and return how many backups were deleted.

        A failed compression or deletion is recorded in ``last_error`` and
        the remaining entries are still processed.
        """
        if max_backups is None or max_backups <= 0:
            max_backups = DEFAULT_MAX_BACKUPS

        deleted = 0
        for index, entry in enumerate(self.sorted_backups()):
            if index >= max_backups:
                try:
                    entry.path.unlink()
                except OSError as e:
                    self.last_error = f"Failed to delete backup: {entry.path} ({e})"
                    logger.warning(self.last_error)
                    continue
                logger.debug("deleted backup %s", entry.path)
                deleted += 1
            elif index >= KEEP_UNCOMPRESSED and not entry.compressed:
                result = self.compressor.compress(entry.path)
                if not result:
                    self.last_error = result.message
                    logger.warning(result.message)
                else:
                    logger.debug("compressed backup %s", entry.path)
        return deleted

    def restore_from_backup(self, backup_path: Path) -> OperationResult:
        """Copy a backup over the tracked file.

        Compressed backups are first decompressed next to the archive, which
        is kept.
        """
        backup_path = Path(backup_path)
        source = backup_path
        if backup_path.name.endswith(self.compressor.suffix):
            result = self.compressor.decompress(backup_path)
            if not result:
                return self._fail(result.error)
            source = result.value

        if not source.exists():
            return self._fail(NotFoundError(f"Backup file does not exist: {source}"))

        try:
            shutil.copyfile(source, self.tracked_path)
        except OSError as e:
            return self._fail(StorageIOError(f"Failed to restore from backup: {e}"))

        logger.info("restored %s from %s", self.tracked_path, source)
        return OperationResult.success(self.tracked_path)

    def restore_from_last_backup(self) -> OperationResult:
        last_backup = self.get_last_backup_path()
        if last_backup is None:
            return self._fail(NotFoundError("No backup found"))
        return self.restore_from_backup(last_backup)

    def get_last_error(self) -> str:
        return self.last_error
