"""
Sync target connections for rsync-bridge.

A Connection describes where rsync should write: a local directory, a remote
host reached over SSH, or an Akamai NetStorage rsync daemon. Connections are
validated when constructed and cannot be changed afterwards.
"""

import logging
import os
from typing import Optional, Dict, List

from .exceptions import InvalidConfigError
from .models import ConnectionType, TargetConfig

AUTH_KEYS = ("ssh_key", "password")


class Connection:
    """A validated rsync destination."""

    def __init__(
        self,
        connection_type: str = "local",
        destination_root: str = "/",
        host: Optional[str] = None,
        user: Optional[str] = None,
        auth: Optional[Dict[str, str]] = None
    ):
        """Initialize and validate a connection.

        Args:
            connection_type: One of ``local``, ``remote`` or ``akamai``
            destination_root: Directory on the target this connection writes under
            host: Remote host (not required for local connections)
            user: Remote user (not required for local connections)
            auth: ``{'ssh_key': '/path/to/key'}`` or ``{'password': 'secret'}``

        Raises:
            InvalidConfigError: If any parameter is invalid
        """
        self.logger = logging.getLogger(__name__)

        self._type = self._validate_type(connection_type)
        self._destination_root = self._validate_destination_root(destination_root)
        self._host = host
        self._user = user
        self._auth = self._validate_auth_mapping(auth)

        self._validate_host()
        self._validate_auth()

        self.logger.debug(f"Created {self._type.value} connection to {self.get_destination()}")

    @classmethod
    def from_config(cls, target: TargetConfig) -> "Connection":
        """Create a connection from a configuration-file target."""
        return cls(
            connection_type=target.type.value,
            destination_root=target.destination_root,
            host=target.host,
            user=target.user,
            auth=target.auth,
        )

    @property
    def connection_type(self) -> ConnectionType:
        return self._type

    @property
    def destination_root(self) -> str:
        return self._destination_root

    @property
    def host(self) -> Optional[str]:
        return self._host

    @property
    def user(self) -> Optional[str]:
        return self._user

    @property
    def ssh_key(self) -> Optional[str]:
        return self._auth.get("ssh_key")

    @property
    def is_local(self) -> bool:
        return self._type == ConnectionType.LOCAL

    def get_ssh_key(self) -> str:
        """Return the ``-e "ssh -i <key>"`` shell fragment, or an empty string."""
        if self.ssh_key is None:
            return ''
        return f'-e "ssh -i {self.ssh_key}"'

    def get_ssh_args(self) -> List[str]:
        """Return the remote shell option as discrete arguments."""
        if self.ssh_key is None:
            return []
        return ['-e', f'ssh -i {self.ssh_key}']

    def get_environment(self) -> Dict[str, str]:
        """Return environment variables the rsync process needs for authentication."""
        password = self._auth.get("password")
        if password:
            return {"RSYNC_PASSWORD": password}
        return {}

    def get_destination(self, directory: Optional[str] = '') -> str:
        """Build the destination address for rsync.

        Args:
            directory: Directory relative to the destination root

        Returns:
            ``root+dir`` for local targets, ``user@host:root+dir`` for remote
            targets and ``user@host::user+root+dir`` for Akamai storage, where
            the user doubles as the storage group name.
        """
        directory = directory or ''

        if self._type == ConnectionType.AKAMAI:
            return f"{self._user}@{self._host}::{self._user}{self._destination_root}{directory}"

        if self._type == ConnectionType.REMOTE:
            return f"{self._user}@{self._host}:{self._destination_root}{directory}"

        return f"{self._destination_root}{directory}"

    def _validate_type(self, connection_type) -> ConnectionType:
        try:
            return ConnectionType(connection_type)
        except ValueError:
            raise InvalidConfigError(
                f"{connection_type} is not a valid value for connection type argument.",
                field_name="connection_type",
                field_value=connection_type
            ) from None

    def _validate_destination_root(self, destination_root: str) -> str:
        if not destination_root or not destination_root.startswith('/'):
            raise InvalidConfigError(
                "The destination root directory must be an absolute path.",
                field_name="destination_root",
                field_value=destination_root
            )

        if not destination_root.endswith('/'):
            destination_root += '/'

        return destination_root

    def _validate_host(self):
        if not self.is_local and not self._host:
            raise InvalidConfigError("Host is required.", field_name="host")

    @staticmethod
    def _validate_auth_mapping(auth) -> Dict[str, str]:
        if not auth:
            return {}
        if not isinstance(auth, dict):
            raise InvalidConfigError(
                "Authentication must be a mapping of ssh_key or password.",
                field_name="auth",
                field_value=str(auth)
            )
        return dict(auth)

    def _validate_auth(self):
        if self.is_local:
            return

        if not self._user:
            raise InvalidConfigError("User is required.", field_name="user")

        if not self._auth:
            raise InvalidConfigError(
                "Authentication is required for remote connections.",
                field_name="auth"
            )

        unknown = sorted(set(self._auth) - set(AUTH_KEYS))
        if unknown:
            raise InvalidConfigError(
                f"Unsupported authentication option(s): {', '.join(unknown)}",
                field_name="auth"
            )

        if "ssh_key" in self._auth and "password" in self._auth:
            raise InvalidConfigError(
                "Specify either an SSH key or a password, not both.",
                field_name="auth"
            )

        ssh_key = self._auth.get("ssh_key")
        if ssh_key is not None and (
            not isinstance(ssh_key, str) or not os.path.isfile(os.path.expanduser(ssh_key))
        ):
            raise InvalidConfigError(
                "SSH key path is invalid.",
                field_name="ssh_key",
                field_value=ssh_key
            )

        password = self._auth.get("password")
        if "password" in self._auth and (not isinstance(password, str) or not password.strip()):
            raise InvalidConfigError(
                "Password is required for non-SSH connections.",
                field_name="password"
            )

    def __repr__(self) -> str:
        auth = "ssh_key" if self.ssh_key else ("password" if self.get_environment() else None)
        return (
            f"Connection(type={self._type.value!r}, "
            f"destination={self.get_destination()!r}, auth={auth!r})"
        )
