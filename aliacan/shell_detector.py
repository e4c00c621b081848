"""Shell detection and startup file lookup"""

import os
import pwd
from enum import Enum
from pathlib import Path
from typing import Optional

from aliacan.models import ShellDialect


class ShellType(Enum):
    """Supported shell types"""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"
    SH = "sh"
    UNKNOWN = "unknown"


class ShellDetector:
    """Detect the user's shell and the file its aliases live in"""

    CONFIG_FILES = {
        ShellType.BASH: ".bashrc",
        ShellType.ZSH: ".zshrc",
        ShellType.FISH: ".config/fish/config.fish",
        ShellType.SH: ".profile",
    }

    DIALECTS = {
        ShellType.BASH: ShellDialect.POSIX_EQUALS,
        ShellType.ZSH: ShellDialect.POSIX_EQUALS,
        ShellType.SH: ShellDialect.POSIX_EQUALS,
        ShellType.FISH: ShellDialect.SPACE_DELIMITED,
    }

    def __init__(self, home_dir: Optional[Path] = None):
        self.home_dir = home_dir or Path.home()

    @staticmethod
    def _from_shell_path(shell_path: str) -> Optional[ShellType]:
        shell_path = shell_path.lower()
        if "zsh" in shell_path:
            return ShellType.ZSH
        elif "bash" in shell_path:
            return ShellType.BASH
        elif "fish" in shell_path:
            return ShellType.FISH
        elif shell_path.endswith("/sh") or shell_path == "sh":
            return ShellType.SH
        return None

    def detect_current_shell(self) -> ShellType:
        # Method 1: SHELL environment variable
        shell_env = os.environ.get("SHELL", "")
        if shell_env:
            detected = self._from_shell_path(shell_env)
            if detected:
                return detected

        # Method 2: the user's login shell from /etc/passwd
        try:
            detected = self._from_shell_path(pwd.getpwuid(os.getuid()).pw_shell)
            if detected:
                return detected
        except (KeyError, OSError):
            pass

        # Method 3: whichever startup file exists
        for shell_type in (ShellType.ZSH, ShellType.BASH, ShellType.FISH):
            if (self.home_dir / self.CONFIG_FILES[shell_type]).exists():
                return shell_type

        return ShellType.UNKNOWN

    def default_config_file(self, shell_type: Optional[ShellType] = None) -> Optional[Path]:
        """Startup file for a shell, None when the shell is unknown"""
        if shell_type is None:
            shell_type = self.detect_current_shell()
        relative = self.CONFIG_FILES.get(shell_type)
        return self.home_dir / relative if relative else None

    @classmethod
    def dialect_for(cls, shell_type: ShellType) -> ShellDialect:
        return cls.DIALECTS.get(shell_type, ShellDialect.UNKNOWN)
