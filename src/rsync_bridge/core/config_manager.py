"""
Configuration management for rsync-bridge.

This module handles loading and validating the YAML configuration file that
names sync targets and default transfer options.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .connection import Connection
from .exceptions import ConfigurationError, InvalidConfigError
from .models import ProjectConfig, TargetConfig, TransferOptions

SEARCH_PATHS = [
    # Current directory
    "./rsync-bridge.yaml",
    "./rsync-bridge.yml",
    "./.rsync-bridge.yaml",
    # User home directory
    "~/.rsync-bridge/config.yaml",
    "~/.rsync-bridge.yaml",
    # System-wide configuration
    "/etc/rsync-bridge/config.yaml",
]


class ConfigManager:
    """Manages configuration loading, validation and target lookup."""

    def __init__(self, config_path: Optional[str] = None, auto_load: bool = True):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, auto-detect.
            auto_load: Load the configuration file immediately if it exists
        """
        self.logger = logging.getLogger(__name__)
        self.config_path = self._resolve_config_path(config_path)
        self.config: Optional[ProjectConfig] = None

        if auto_load and self.config_path and os.path.exists(self.config_path):
            self.load_config()

    def _resolve_config_path(self, config_path: Optional[str]) -> Optional[str]:
        """Resolve configuration file path with auto-detection."""
        if config_path:
            return os.path.expanduser(config_path)

        for path in SEARCH_PATHS:
            expanded_path = os.path.expanduser(path)
            if os.path.exists(expanded_path):
                self.logger.debug(f"Found configuration file: {expanded_path}")
                return expanded_path

        return None

    def load_config(self, config_path: Optional[str] = None) -> ProjectConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        if config_path:
            self.config_path = os.path.expanduser(config_path)

        if not self.config_path or not os.path.exists(self.config_path):
            raise ConfigurationError(
                f"Configuration file not found: {self.config_path}",
                config_path=self.config_path,
            )

        try:
            with open(self.config_path, "r") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}", config_path=self.config_path
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read configuration file: {e}", config_path=self.config_path
            ) from e

        if not isinstance(raw_config, dict):
            raise ConfigurationError(
                "Configuration file must contain a mapping",
                config_path=self.config_path,
            )

        try:
            self.config = ProjectConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e}",
                config_path=self.config_path,
                validation_errors=[
                    f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
                    for error in e.errors()
                ],
            ) from e

        self.logger.info(f"Loaded configuration from {self.config_path}")
        return self.config

    def get_config(self) -> ProjectConfig:
        """Get the loaded configuration.

        Raises:
            ConfigurationError: If no configuration is loaded
        """
        if self.config is None:
            raise ConfigurationError("No configuration loaded", config_path=self.config_path)

        return self.config

    def get_target(self, name: Optional[str] = None) -> TargetConfig:
        """Get a target by name, falling back to the default target.

        A configuration with a single target needs no ``default_target``.
        """
        config = self.get_config()
        name = name or config.default_target

        if name is None:
            if len(config.targets) == 1:
                return next(iter(config.targets.values()))
            raise ConfigurationError(
                "No target given and no default_target configured",
                config_path=self.config_path,
            )

        if name not in config.targets:
            raise ConfigurationError(
                f"Target '{name}' not found", config_path=self.config_path
            )

        return config.targets[name]

    def get_connection(self, name: Optional[str] = None) -> Connection:
        """Build a validated Connection for a target."""
        return Connection.from_config(self.get_target(name))

    def get_options(self) -> TransferOptions:
        """Get the default transfer options."""
        return self.get_config().options

    def list_targets(self) -> List[str]:
        """List configured target names."""
        if self.config is None:
            return []
        return list(self.config.targets.keys())

    def validate_config(self, config_path: Optional[str] = None) -> List[str]:
        """Validate configuration file and return list of issues.

        Every target is also turned into a Connection, so missing SSH keys
        and empty credentials are reported too.

        Args:
            config_path: Path to configuration file

        Returns:
            List of validation error messages (empty if valid)
        """
        issues = []

        try:
            config = self.load_config(config_path)
        except ConfigurationError as e:
            return e.validation_errors or [e.message]

        for name, target in config.targets.items():
            try:
                Connection.from_config(target)
            except InvalidConfigError as e:
                issues.append(f"targets.{name}: {e.message}")

        return issues

    def create_default_config(self, output_path: str) -> str:
        """Create a default configuration file.

        Args:
            output_path: Path where to create the configuration file

        Returns:
            Path to created configuration file
        """
        output_path = os.path.expanduser(output_path)
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, "w") as f:
            yaml.safe_dump(self._get_template(), f, default_flow_style=False, sort_keys=False)

        self.logger.info(f"Created configuration template: {output_path}")
        return output_path

    def _get_template(self) -> Dict[str, Any]:
        """Get the configuration template."""
        return {
            "default_target": "local",
            "log_level": "INFO",
            "options": {
                "archive": True,
                "delete": False,
                "exclude": [".DS_Store", "Thumbs.db"],
            },
            "targets": {
                "local": {
                    "type": "local",
                    "destination_root": "/var/backups/site",
                },
                "server": {
                    "type": "remote",
                    "destination_root": "/var/www/site",
                    "host": "example.com",
                    "user": "deploy",
                    "auth": {"ssh_key": "~/.ssh/id_rsa"},
                },
                "cdn": {
                    "type": "akamai",
                    "destination_root": "/12345",
                    "host": "example.upload.akamai.com",
                    "user": "sshacs",
                    "auth": {"ssh_key": "~/.ssh/akamai"},
                },
            },
        }
