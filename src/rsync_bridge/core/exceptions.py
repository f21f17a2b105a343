"""
Exception classes for rsync-bridge.

This module defines the custom exceptions raised by connections, the rsync
command builder and the configuration layer.
"""

from typing import Optional, Dict, Any, List


class RsyncBridgeError(Exception):
    """Base exception for all rsync-bridge errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize RsyncBridgeError.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code for programmatic handling
            details: Additional error details and context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class InvalidConfigError(RsyncBridgeError):
    """Raised when connection parameters or transfer options are invalid."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None
    ):
        """Initialize InvalidConfigError.

        Args:
            message: Error message
            field_name: Name of the parameter that failed validation
            field_value: Value that failed validation
        """
        details = {}
        if field_name:
            details["field_name"] = field_name
        if field_value is not None:
            details["field_value"] = str(field_value)

        super().__init__(message, "INVALID_CONFIG", details)
        self.field_name = field_name
        self.field_value = field_value


class ExecutionFailedError(RsyncBridgeError):
    """Raised when the rsync process exits with a non-zero code."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        output: Optional[List[str]] = None,
        returncode: Optional[int] = None
    ):
        """Initialize ExecutionFailedError.

        Args:
            message: Error message, including the captured output
            command: Command that was executed
            output: Captured combined stdout/stderr lines
            returncode: Exit code reported by rsync
        """
        details = {}
        if command:
            details["command"] = command
        if returncode is not None:
            details["returncode"] = returncode

        super().__init__(message, "EXECUTION_FAILED", details)
        self.command = command
        self.output = output or []
        self.returncode = returncode


class ConfigurationError(RsyncBridgeError):
    """Raised when the configuration file is missing or invalid."""

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        validation_errors: Optional[list] = None
    ):
        """Initialize ConfigurationError.

        Args:
            message: Error message
            config_path: Path to the configuration file with issues
            validation_errors: List of specific validation errors
        """
        details = {}
        if config_path:
            details["config_path"] = config_path
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(message, "CONFIG_ERROR", details)
        self.config_path = config_path
        self.validation_errors = validation_errors or []
