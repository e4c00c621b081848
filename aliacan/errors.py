"""Error taxonomy and result values"""

from dataclasses import dataclass
from typing import Any, Optional


class AliacanError(Exception):
    """Base error for alias and backup operations"""

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(AliacanError):
    """An alias name or command breaks its invariants"""


class NotFoundError(AliacanError):
    """Tracked file, backup file or alias is missing"""


class StorageIOError(AliacanError):
    """Copy, create, permission or directory failure"""


class CompressionError(AliacanError):
    """The compression tool is missing or exited non-zero"""


@dataclass
class OperationResult:
    """Outcome of a fallible operation.

    Expected failures are reported here instead of being raised, so callers
    must check ``ok`` (or the truthiness of the result) before using ``value``.
    """
    ok: bool
    value: Any = None
    error: Optional[AliacanError] = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: AliacanError) -> "OperationResult":
        return cls(ok=False, error=error)

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    def __bool__(self) -> bool:
        return self.ok
