"""
Configuration management for azac.

Handles loading, validation, and access to tool settings. The key
operations' scope (store, application, label) is not configuration; it lives
in the context file managed by ``azac.core.context``.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import click
import yaml
from pydantic import BaseModel, Field, ValidationError, ConfigDict

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("config.yaml", "config.yml", "config.json")


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Supported log formats."""
    TEXT = "text"
    JSON = "json"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'azac.azcli': 'DEBUG'}"
    )


class ContextConfig(BaseModel):
    """Where the context file lives."""
    file: Optional[str] = Field(
        default=None,
        description="Context file path; defaults to the per-user azac directory"
    )


class ImportConfig(BaseModel):
    """Bulk import settings."""
    workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum concurrent import workers; defaults to the CPU count"
    )


class AzCliConfig(BaseModel):
    """Azure CLI settings."""
    executable: str = "az"
    check_login: bool = True


class AzacConfig(BaseModel):
    """Main azac configuration schema."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    context: ContextConfig = Field(default_factory=ContextConfig)

    importer: ImportConfig = Field(default_factory=ImportConfig)

    azcli: AzCliConfig = Field(default_factory=AzCliConfig)

    model_config = ConfigDict(use_enum_values=True)


def default_config_file() -> Optional[Path]:
    """Return the first per-user config file that exists, if any."""
    app_dir = Path(click.get_app_dir("azac"))
    for name in CONFIG_FILE_NAMES:
        candidate = app_dir / name
        if candidate.exists():
            return candidate
    return None


class ConfigManager:
    """
    Manages azac configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (AZAC_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[AzacConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> AzacConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated AzacConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.debug("Loading azac configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.debug(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.debug(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.debug(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            self._config = AzacConfig(**config_dict)
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        if log_level := os.getenv("AZAC_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_format := os.getenv("AZAC_LOG_FORMAT"):
            config.setdefault("logging", {})["format"] = log_format.lower()
        if log_file := os.getenv("AZAC_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        if context_file := os.getenv("AZAC_CONTEXT_FILE"):
            config.setdefault("context", {})["file"] = context_file

        if workers := os.getenv("AZAC_IMPORT_WORKERS"):
            config.setdefault("importer", {})["workers"] = int(workers)

        if az_path := os.getenv("AZAC_AZ_PATH"):
            config.setdefault("azcli", {})["executable"] = az_path
        if check_login := os.getenv("AZAC_CHECK_LOGIN"):
            config.setdefault("azcli", {})["check_login"] = check_login.lower() in ['true', '1', 'yes']

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration."""
        if not self._config:
            return
        logger.debug(f"Active configuration: {json.dumps(self._config.model_dump(), indent=2)}")

    def get_config(self) -> AzacConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> AzacConfig:
        """Reload configuration from the same sources."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
