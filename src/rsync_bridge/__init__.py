"""
rsync-bridge - rsync command builder for local, SSH and Akamai targets

Builds correctly escaped rsync invocations for a validated destination,
runs them, and reports failures with the captured rsync output.

Key Features:
- Local, remote (SSH) and Akamai NetStorage destinations
- SSH key or password authentication
- Include/exclude filters with literal filename escaping
- Allow-list transfers of explicit file sets
- Dry runs reported through logging

Example Usage:
    >>> from rsync_bridge import Connection, Rsync
    >>> connection = Connection("remote", "/var/www", "example.com", "deploy",
    ...                         {"ssh_key": "~/.ssh/id_rsa"})
    >>> Rsync(connection).run("build", "site", {"delete": True})
    0

CLI Usage:
    $ rsync-bridge push build site --dry-run
    $ rsync-bridge files build site index.html app.js
    $ rsync-bridge targets
    $ rsync-bridge doctor
"""

from .__version__ import (
    __version__,
    __version_info__,
    get_version,
    get_version_info,
)

from .core.connection import Connection
from .core.rsync import Rsync
from .core.config_manager import ConfigManager

from .core.exceptions import (
    RsyncBridgeError,
    InvalidConfigError,
    ExecutionFailedError,
    ConfigurationError,
)

from .core.models import ConnectionType, TransferOptions, TransferResult, TargetConfig

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "get_version",
    "get_version_info",

    # Core classes
    "Connection",
    "Rsync",
    "ConfigManager",

    # Exceptions
    "RsyncBridgeError",
    "InvalidConfigError",
    "ExecutionFailedError",
    "ConfigurationError",

    # Models
    "ConnectionType",
    "TransferOptions",
    "TransferResult",
    "TargetConfig",
]

# Package metadata
__title__ = "rsync-bridge"
__description__ = "rsync command builder for local, SSH and Akamai NetStorage targets"
__license__ = "MIT"

import sys
from .__version__ import MINIMUM_PYTHON_VERSION

if sys.version_info < MINIMUM_PYTHON_VERSION:
    raise RuntimeError(
        f"rsync-bridge requires Python {'.'.join(map(str, MINIMUM_PYTHON_VERSION))} "
        f"or higher. You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )
