"""Data models for aliases and backups"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Optional

COMPRESSED_SUFFIX = ".xz"


def _today() -> str:
    return date.today().isoformat()


class ShellDialect(Enum):
    """Alias syntax variants"""

    POSIX_EQUALS = "posix"  # bash/zsh: alias name='cmd'
    SPACE_DELIMITED = "space"  # fish: alias name 'cmd'
    UNKNOWN = "unknown"


@dataclass
class AliasRecord:
    """Represents a shell alias defined in a startup file"""
    name: str
    command: str
    description: Optional[str] = field(default=None, compare=False)
    enabled: bool = field(default=True, compare=False)
    created_at: str = field(default_factory=_today, compare=False)
    last_used_at: str = field(default_factory=_today, compare=False)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "command": self.command,
            "description": self.description,
            "enabled": self.enabled,
            "created_at": self.created_at,
            "last_used_at": self.last_used_at,
        }

    def to_line(self, dialect: ShellDialect = ShellDialect.POSIX_EQUALS) -> str:
        """Format as a startup file line, empty if invalid"""
        from aliacan.codec import AliasRecordCodec

        return AliasRecordCodec(dialect).format(self)

    def __str__(self) -> str:
        return f"{self.name}='{self.command}'"


@dataclass
class BackupEntry:
    """One timestamped snapshot of a tracked file"""
    path: Path
    modified_at: datetime

    @property
    def compressed(self) -> bool:
        return self.path.name.endswith(COMPRESSED_SUFFIX)

    @classmethod
    def from_path(cls, path: Path) -> "BackupEntry":
        """Build an entry from a file on disk; raises OSError if it cannot be stat'ed"""
        return cls(path=path, modified_at=datetime.fromtimestamp(path.stat().st_mtime))
