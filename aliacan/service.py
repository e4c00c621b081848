"""Alias edits guarded by backups"""

import logging
from typing import List, Optional

from rapidfuzz import fuzz

from aliacan.backup import BackupManager
from aliacan.codec import CommandPolicy
from aliacan.config_store import ConfigStore
from aliacan.errors import OperationResult, ValidationError
from aliacan.models import AliasRecord

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 60


class AliasService:
    """Edit aliases in a startup file, taking a backup before every change.

    If the backup fails the edit is not attempted.
    """

    def __init__(
        self,
        store: ConfigStore,
        backups: BackupManager,
        policy: Optional[CommandPolicy] = None,
        auto_backup: bool = True,
    ):
        self.store = store
        self.backups = backups
        self.policy = policy or CommandPolicy()
        self.auto_backup = auto_backup

    def list(self) -> OperationResult:
        return self.store.load_aliases()

    def search(self, term: str, fuzzy: bool = False) -> OperationResult:
        loaded = self.list()
        if not loaded:
            return loaded

        term = term.lower()
        aliases: List[AliasRecord] = loaded.value
        if not fuzzy:
            return OperationResult.success(
                [
                    a for a in aliases
                    if term in a.name.lower()
                    or term in a.command.lower()
                    or (a.description and term in a.description.lower())
                ]
            )

        results = []
        for alias in aliases:
            name_score = fuzz.partial_ratio(term, alias.name.lower())
            cmd_score = fuzz.partial_ratio(term, alias.command.lower())
            desc_score = fuzz.partial_ratio(term, alias.description.lower()) if alias.description else 0
            score = max(name_score, cmd_score, desc_score)
            if score >= FUZZY_THRESHOLD:
                results.append((alias, score))
        results.sort(key=lambda x: x[1], reverse=True)
        return OperationResult.success([alias for alias, _ in results])

    def _snapshot(self) -> OperationResult:
        # Nothing to protect yet
        if not self.auto_backup or not self.store.exists():
            return OperationResult.success()
        return self.backups.create_backup()

    def _check_policy(self, record: AliasRecord) -> OperationResult:
        allowed, reason = self.policy.check(record.command)
        if not allowed:
            return OperationResult.failure(ValidationError(f"Command for {record.name!r} rejected: {reason}"))
        return OperationResult.success()

    def add(self, record: AliasRecord) -> OperationResult:
        checked = self._check_policy(record)
        if not checked:
            return checked
        snapshot = self._snapshot()
        if not snapshot:
            logger.error("backup failed, not adding %s", record.name)
            return snapshot
        return self.store.add_alias(record)

    def update(self, record: AliasRecord) -> OperationResult:
        checked = self._check_policy(record)
        if not checked:
            return checked
        snapshot = self._snapshot()
        if not snapshot:
            logger.error("backup failed, not updating %s", record.name)
            return snapshot
        return self.store.update_alias(record)

    def remove(self, name: str) -> OperationResult:
        snapshot = self._snapshot()
        if not snapshot:
            logger.error("backup failed, not removing %s", name)
            return snapshot
        return self.store.remove_alias(name)

    def restore(self, backup_path=None) -> OperationResult:
        if backup_path is None:
            return self.backups.restore_from_last_backup()
        return self.backups.restore_from_backup(backup_path)
