"""
Pydantic models for rsync-bridge configuration and data structures.

This module defines the transfer options accepted by the rsync command
builder, the configuration-file schema for sync targets, and the result of
an rsync execution.
"""

from typing import Optional, List, Dict, Any, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import os


class ConnectionType(str, Enum):
    """Kinds of sync targets."""
    LOCAL = "local"
    REMOTE = "remote"
    AKAMAI = "akamai"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class TransferOptions(BaseModel):
    """Rsync options for a single transfer.

    ``compress`` and ``relative`` are accepted for compatibility but are not
    translated into rsync flags.
    """

    model_config = ConfigDict(extra="forbid")

    archive: bool = Field(True, description="Use archive mode (--archive)")
    compress: bool = Field(True, description="Compress during transfer (not emitted)")
    relative: bool = Field(False, description="Use relative path names (not emitted)")
    delete: bool = Field(False, description="Delete extraneous files (--delete)")
    dry_run: bool = Field(False, description="Dry run mode (--dry-run --verbose)")
    include: Optional[List[str]] = Field(None, description="Include patterns, in order")
    exclude: Optional[List[str]] = Field(None, description="Exclude patterns, in order")
    cwd: Optional[str] = Field(None, description="Working directory for the rsync process")

    @field_validator('include', 'exclude', mode='before')
    @classmethod
    def coerce_pattern_list(cls, v):
        """Accept a single pattern as shorthand for a one-element list."""
        if isinstance(v, str):
            return [v]
        return v


class TargetConfig(BaseModel):
    """A sync target as described in the configuration file."""

    type: ConnectionType = Field(ConnectionType.LOCAL, description="Connection type")
    destination_root: str = Field("/", description="Root directory on the target")
    host: Optional[str] = Field(None, description="Remote host")
    user: Optional[str] = Field(None, description="Remote user")
    auth: Optional[Dict[str, str]] = Field(
        None,
        description="Either {ssh_key: path}, {password: secret} or {password_env: VAR}"
    )

    @field_validator('auth')
    @classmethod
    def resolve_password_env(cls, v):
        """Replace ``password_env`` with the password read from the environment."""
        if not v or "password_env" not in v:
            return v

        resolved = dict(v)
        variable = resolved.pop("password_env")
        password = os.environ.get(variable)
        if password is None:
            raise ValueError(f"Environment variable {variable} is not set")

        resolved["password"] = password
        return resolved


class ProjectConfig(BaseModel):
    """Main rsync-bridge configuration."""

    default_target: Optional[str] = Field(None, description="Target used when none is given")
    log_level: LogLevel = Field(LogLevel.INFO, description="Console log level")
    options: TransferOptions = Field(
        default_factory=TransferOptions,
        description="Default transfer options"
    )
    targets: Dict[str, TargetConfig] = Field(description="Named sync targets")

    @field_validator('targets')
    @classmethod
    def validate_targets(cls, v):
        """Ensure at least one target is provided."""
        if not v:
            raise ValueError("At least one target must be provided")
        return v

    @model_validator(mode='after')
    def validate_default_target(self):
        """Ensure the default target refers to a configured target."""
        if self.default_target and self.default_target not in self.targets:
            raise ValueError(f"Default target '{self.default_target}' is not defined")

        return self


class TransferResult(BaseModel):
    """Result of an rsync execution."""

    success: bool = Field(description="Whether rsync exited with code 0")
    command: str = Field(description="Shell rendering of the command")
    args: List[str] = Field(description="Argument vector passed to the process")
    returncode: int = Field(description="Process exit code")
    output: List[str] = Field(default_factory=list, description="Combined stdout/stderr lines")
    dry_run: bool = Field(False, description="Whether this was a dry run")
    duration: float = Field(0.0, description="Execution time in seconds")

    def summary(self) -> Dict[str, Any]:
        """Short dictionary form used by the CLI JSON output."""
        return {
            "success": self.success,
            "returncode": self.returncode,
            "dry_run": self.dry_run,
            "duration": round(self.duration, 3),
            "command": self.command,
        }


OptionsInput = Union[TransferOptions, Dict[str, Any], None]
