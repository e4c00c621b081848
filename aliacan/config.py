import json
from pathlib import Path
from typing import Any, Dict, Optional


class Config:
    """Manage aliacan settings"""

    DEFAULT_CONFIG = {
        "auto_backup": True,
        "max_backups": 20,
        "backup_dir": None,  # None means ~/.shellbackup
        "compressor": "xz",
        "strict_commands": False,
        "config_file": None,  # None means detect from the shell
        "log_level": "WARNING",
    }

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = config_dir or Path.home() / ".aliacan"
        self.config_path = self.config_dir / "config.json"
        self.config = self.load()

    def load(self) -> Dict[str, Any]:
        """Load configuration from file"""
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    user_config = json.load(f)
                if isinstance(user_config, dict):
                    return {**self.DEFAULT_CONFIG, **user_config}
            except (json.JSONDecodeError, OSError):
                pass
        return self.DEFAULT_CONFIG.copy()

    def save(self) -> None:
        """Save configuration to file"""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(self.config, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value and persist it"""
        self.config[key] = value
        self.save()
