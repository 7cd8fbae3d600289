"""Application configuration for repo-acp.

Defines configuration models for logging, policy bootstrap, the parsed
policy cache and the structured-query attribute finder. Config is a JSON
file, by default at <app dir>/config.json (via click.get_app_dir).

Example usage:
    config = AppConfig.load_from_file(config_path)
    delegate = create_delegate(config)
"""

from __future__ import annotations

__all__ = [
    "AppConfig",
    "LoggingConfig",
    "PolicyCacheConfig",
    "default_config_path",
]

import json
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from repo_acp.constants import APP_NAME
from repo_acp.exceptions import ConfigurationError
from repo_acp.utils.file_helpers import get_app_dir, load_validated_json, require_file_exists

CONFIG_FILE_NAME = "config.json"


def default_config_path() -> Path:
    return get_app_dir() / CONFIG_FILE_NAME


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    With a log_dir, logs are stored as:
        <log_dir>/
        └── repo-acp/
            ├── system/
            │   └── system.jsonl      # WARNING and above
            └── audit/
                └── decisions.jsonl   # One event per authorization check

    Without one, only stderr logging is active and decisions are logged at
    DEBUG to the system logger.

    Attributes:
        log_dir: Base directory for log files (None disables file logs).
        log_level: Console level; DEBUG also enables verbose diagnostics.
        verbose_diagnostics: Dump every request and PDP result at DEBUG.
    """

    log_dir: str | None = Field(default=None, min_length=1)
    log_level: Literal["DEBUG", "INFO"] = "INFO"
    verbose_diagnostics: bool = False

    @property
    def diagnostics_enabled(self) -> bool:
        return self.verbose_diagnostics or self.log_level == "DEBUG"

    def _base_dir(self) -> Path | None:
        if self.log_dir is None:
            return None
        return Path(os.path.expanduser(self.log_dir)) / APP_NAME

    @property
    def system_log_path(self) -> Path | None:
        base = self._base_dir()
        return base / "system" / "system.jsonl" if base else None

    @property
    def decisions_log_path(self) -> Path | None:
        base = self._base_dir()
        return base / "audit" / "decisions.jsonl" if base else None


class PolicyCacheConfig(BaseModel):
    """Parsed-policy cache settings.

    Attributes:
        enabled: Cache parsed policies between checks.
        max_entries: Policies kept before least recently used eviction.
    """

    enabled: bool = False
    max_entries: int = Field(default=256, ge=1, le=100_000)


class AppConfig(BaseModel):
    """Main application configuration for repo-acp.

    Attributes:
        workspace_name: Workspace reported for requests.
        policies_dir: Directory of default policies (None: packaged defaults).
        root_policy_file: Root policy document (None: packaged default).
        logging: Logging configuration.
        policy_cache: Parsed-policy cache configuration.
        query_attributes: Attribute id -> query text for the structured-query finder.
    """

    workspace_name: str = Field(default="default", min_length=1)
    policies_dir: str | None = None
    root_policy_file: str | None = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    policy_cache: PolicyCacheConfig = Field(default_factory=PolicyCacheConfig)
    query_attributes: dict[str, str] = Field(default_factory=dict)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file with owner-only permissions."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        if sys.platform != "win32":
            config_path.parent.chmod(0o700)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)

        if sys.platform != "win32":
            config_path.chmod(0o600)

    @classmethod
    def load_from_file(cls, config_path: Path) -> AppConfig:
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config JSON file.

        Returns:
            AppConfig instance with loaded configuration.

        Raises:
            ConfigurationError: If the file is missing, not JSON, or invalid.
        """
        try:
            require_file_exists(config_path, file_type="configuration")
            return load_validated_json(
                config_path,
                cls,
                file_type="config",
                recovery_hint="Fix the listed fields or delete the file to use defaults.",
            )
        except (FileNotFoundError, ValueError) as e:
            raise ConfigurationError(str(e)) from e
