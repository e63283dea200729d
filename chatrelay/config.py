"""Configuration management for chatrelay.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a typed Config object. Property getters provide safe access with
defaults for the command layer, string resources and logging.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Accessor for the process-level Config instance. Only
        entry points use it; handlers receive their Config through
        HandlerContext.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("chatrelay.config")


class Config:
    """Central configuration manager for chatrelay.

    Loads settings.yaml and .env from the config directory. Read-only
    after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigurationError(
                    "Top-level YAML value must be a mapping",
                    setting_name=filename,
                )
            return data
        return {}

    def get(self, name: str, default: Any = None) -> Any:
        """Read a raw top-level setting."""
        return self.settings.get(name, default)

    def require(self, name: str) -> Any:
        """Read a top-level setting that must be present."""
        value = self.settings.get(name)
        if value is None:
            raise ConfigurationError(
                f"Missing required setting: {name}", setting_name=name
            )
        return value

    def validate(self):
        """Validate settings at startup.

        Logs warnings/errors but does not raise -- the relay starts
        with defaults for anything that is wrong.
        """
        if self.notification_address is None:
            logger.warning(
                "no_notification_address",
                msg="Replies without a destination go to the transport default",
            )
        strings_file = self.strings_file
        if strings_file is not None and not strings_file.exists():
            logger.error("strings_file_missing", path=str(strings_file))
        disabled = self.settings.get("disabled_commands", [])
        if not isinstance(disabled, list):
            logger.error("disabled_commands_invalid_type", type=type(disabled).__name__)

    @property
    def notification_address(self) -> Optional[str]:
        """Default reply destination. Env var CHATRELAY_NOTIFICATION_ADDRESS takes precedence."""
        return (
            os.environ.get("CHATRELAY_NOTIFICATION_ADDRESS")
            or self.settings.get("notification_address")
        )

    @property
    def locale(self) -> str:
        """Locale used to pick a section of the strings file (default en)."""
        return self.settings.get("locale", "en")

    @property
    def strings_file(self) -> Optional[Path]:
        """Optional YAML file overriding the built-in user-facing strings."""
        configured = self.settings.get("strings_file")
        if not configured:
            return None
        path = Path(configured).expanduser()
        if not path.is_absolute():
            path = self.config_dir / path
        return path

    @property
    def disabled_commands(self) -> List[str]:
        """Keywords the dispatcher refuses to register."""
        disabled = self.settings.get("disabled_commands", [])
        if not isinstance(disabled, list):
            return []
        return [str(name) for name in disabled]

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"dispatch": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)

    @property
    def logging_format(self) -> str:
        """Log file rendering: "console" (default) or "json"."""
        log_config = self.settings.get("logging", {})
        return str(log_config.get("format", "console")).lower()


_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the process-level config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
