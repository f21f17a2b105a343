"""
Core modules for rsync-bridge.

This package contains connection validation, rsync command building and
execution, and configuration loading.
"""

from .config_manager import ConfigManager
from .connection import Connection
from .exceptions import (
    ConfigurationError,
    ExecutionFailedError,
    InvalidConfigError,
    RsyncBridgeError,
)
from .models import (
    ConnectionType,
    LogLevel,
    ProjectConfig,
    TargetConfig,
    TransferOptions,
    TransferResult,
)
from .rsync import Rsync, escape_pattern, standardize_directory

__all__ = [
    # Core classes
    "Connection",
    "Rsync",
    "ConfigManager",
    # Helpers
    "escape_pattern",
    "standardize_directory",
    # Models and data structures
    "TransferOptions",
    "TransferResult",
    "TargetConfig",
    "ProjectConfig",
    # Enums
    "ConnectionType",
    "LogLevel",
    # Exceptions
    "RsyncBridgeError",
    "InvalidConfigError",
    "ExecutionFailedError",
    "ConfigurationError",
]
