"""
Rsync command builder and runner for rsync-bridge.

This module turns a Connection, a source directory, a destination directory
and a set of transfer options into an rsync invocation, runs it, and
interprets the exit code. It handles:
- Merging per-call options over defaults
- Include/exclude pattern escaping
- Trailing-slash normalization of directories
- Allow-list transfers of an explicit set of files

The process is started from an argument vector without a shell. The
equivalent shell command line is still produced for logging, dry runs and
inspection.
"""

import logging
import os
import re
import subprocess
import time
from typing import Optional, List, Sequence

from pydantic import ValidationError

from .connection import Connection
from .exceptions import InvalidConfigError, ExecutionFailedError
from .models import TransferOptions, TransferResult, OptionsInput

PATTERN_SPECIAL_CHARS = re.compile(r'([\[\]*?])')
SHELL_PATTERN_SPECIAL_CHARS = re.compile(r'(["\[\]*?])')


def escape_pattern(pattern: str, shell: bool = True) -> str:
    """Escape an include/exclude value so rsync matches it literally.

    A lone ``*`` is kept as a wildcard. With ``shell`` the double quote is
    escaped as well, for use inside a double-quoted shell word.
    """
    if pattern == '*':
        return pattern

    regex = SHELL_PATTERN_SPECIAL_CHARS if shell else PATTERN_SPECIAL_CHARS
    return regex.sub(r'\\\1', pattern)


def standardize_directory(directory: Optional[str]) -> str:
    """Ensure a non-empty directory ends with a slash."""
    if not directory:
        return ''

    if not directory.endswith('/'):
        directory += '/'

    return directory


class Rsync:
    """Builds and runs rsync commands against a Connection."""

    def __init__(
        self,
        connection: Connection,
        logger: Optional[logging.Logger] = None,
        *,
        default_options: Optional[TransferOptions] = None,
        rsync_binary: str = 'rsync'
    ):
        """Initialize the rsync runner.

        Args:
            connection: Validated destination connection
            logger: Logger receiving dry-run reports; defaults to the module logger
            default_options: Options that per-call options are merged over
            rsync_binary: Name or path of the rsync executable
        """
        self.connection = connection
        self.logger = logger or logging.getLogger(__name__)
        self.default_options = default_options or TransferOptions()
        self.rsync_binary = rsync_binary

    def merge_options(self, options: OptionsInput = None) -> TransferOptions:
        """Merge supplied options over the defaults; supplied keys win."""
        if options is None:
            return self.default_options
        if isinstance(options, TransferOptions):
            return options

        merged = self.default_options.model_dump()
        merged.update(options)

        try:
            return TransferOptions(**merged)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid transfer options: {e}", field_name="options") from e

    def build_args(
        self,
        source_directory: str,
        destination_directory: str,
        options: OptionsInput = None
    ) -> List[str]:
        """Build the rsync argument vector for a general transfer."""
        options = self.merge_options(options)
        args = [self.rsync_binary]
        args.extend(self.connection.get_ssh_args())

        if options.dry_run:
            args.extend(['--dry-run', '--verbose'])
        if options.archive:
            args.append('--archive')
        if options.delete:
            args.append('--delete')

        for pattern in options.include or []:
            args.append(f"--include={escape_pattern(pattern, shell=False)}")
        for pattern in options.exclude or []:
            args.append(f"--exclude={escape_pattern(pattern, shell=False)}")

        args.extend(self._paths(source_directory, destination_directory))
        return [arg for arg in args if arg]

    def compile_command(
        self,
        source_directory: str,
        destination_directory: str,
        options: OptionsInput = None
    ) -> str:
        """Render a general transfer as a shell command line."""
        options = self.merge_options(options)
        command = []

        if options.cwd:
            command.append(f"cd {options.cwd} &&")

        command.append(self.rsync_binary)
        command.append(self.connection.get_ssh_key())

        if options.dry_run:
            command.append('--dry-run --verbose')
        if options.archive:
            command.append('--archive')
        if options.delete:
            command.append('--delete')

        for pattern in options.include or []:
            command.append(f'--include="{escape_pattern(pattern)}"')
        for pattern in options.exclude or []:
            command.append(f'--exclude="{escape_pattern(pattern)}"')

        command.extend(self._paths(source_directory, destination_directory))
        command.append('2>&1')

        return ' '.join(token for token in command if token)

    def run(
        self,
        source_directory: str,
        destination_directory: str,
        options: OptionsInput = None,
        return_command: bool = False
    ):
        """Run a general transfer.

        Args:
            source_directory: Local source directory
            destination_directory: Destination relative to the connection root
            options: Options overriding the defaults
            return_command: Return the command line instead of running it

        Returns:
            The command line when ``return_command`` is set, otherwise the
            exit code (0).

        Raises:
            InvalidConfigError: If the options are invalid
            ExecutionFailedError: If rsync exits with a non-zero code
        """
        options = self.merge_options(options)
        command = self.compile_command(source_directory, destination_directory, options)

        if return_command:
            return command

        result = self.execute(source_directory, destination_directory, options)
        return result.returncode

    def execute(
        self,
        source_directory: str,
        destination_directory: str,
        options: OptionsInput = None
    ) -> TransferResult:
        """Run a general transfer and return the full result."""
        options = self.merge_options(options)
        args = self.build_args(source_directory, destination_directory, options)
        command = self.compile_command(source_directory, destination_directory, options)

        return self._run_rsync_command(args, command, cwd=options.cwd, dry_run=options.dry_run)

    def build_file_args(
        self,
        source_directory: str,
        destination_directory: str,
        files: Sequence[str]
    ) -> List[str]:
        """Build the argument vector for an allow-list transfer."""
        files = self._validate_files(files)
        args = [self.rsync_binary]
        args.extend(self.connection.get_ssh_args())
        args.append('-a')
        args.extend(f"--include={name}" for name in files)
        args.append('--exclude=*')
        args.extend(self._paths(source_directory, destination_directory))
        return [arg for arg in args if arg]

    def compile_file_command(
        self,
        source_directory: str,
        destination_directory: str,
        files: Sequence[str]
    ) -> str:
        """Render an allow-list transfer as a shell command line."""
        files = self._validate_files(files)
        command = [self.rsync_binary, self.connection.get_ssh_key(), '-a']

        for name in files:
            escaped = name.replace('"', '\\"')
            command.append(f'--include="{escaped}"')

        command.append('--exclude="*"')
        command.extend(self._paths(source_directory, destination_directory))
        command.append('2>&1')

        return ' '.join(token for token in command if token)

    def transfer_files(
        self,
        source_directory: str,
        destination_directory: str,
        files: Sequence[str],
        return_command: bool = False
    ):
        """Transfer only the named files, excluding everything else.

        Archive mode is always used and the general options are ignored.

        Raises:
            InvalidConfigError: If ``files`` is empty
            ExecutionFailedError: If rsync exits with a non-zero code
        """
        command = self.compile_file_command(source_directory, destination_directory, files)

        if return_command:
            return command

        result = self.execute_files(source_directory, destination_directory, files)
        return result.returncode

    def execute_files(
        self,
        source_directory: str,
        destination_directory: str,
        files: Sequence[str]
    ) -> TransferResult:
        """Run an allow-list transfer and return the full result."""
        args = self.build_file_args(source_directory, destination_directory, files)
        command = self.compile_file_command(source_directory, destination_directory, files)

        return self._run_rsync_command(args, command)

    def _validate_files(self, files: Sequence[str]) -> List[str]:
        if isinstance(files, str):
            files = [files]

        files = list(files or [])
        if not files:
            raise InvalidConfigError(
                "List of files to include cannot be empty",
                field_name="files"
            )

        return files

    def _paths(self, source_directory: str, destination_directory: str) -> List[str]:
        return [
            standardize_directory(source_directory),
            self.connection.get_destination(standardize_directory(destination_directory)),
        ]

    def _run_rsync_command(
        self,
        args: List[str],
        command: str,
        cwd: Optional[str] = None,
        dry_run: bool = False
    ) -> TransferResult:
        """Run rsync and raise if it fails."""
        env = os.environ.copy()
        env.update(self.connection.get_environment())

        self.logger.debug(f"Running rsync command: {command}")
        start_time = time.time()

        try:
            process = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="backslashreplace",
                cwd=cwd,
                env=env
            )
        except OSError as e:
            self.logger.error(f"Could not start rsync: {e}")
            # shell conventions: 127 command not found, 126 cannot execute
            missing_binary = isinstance(e, FileNotFoundError) and e.filename in (None, args[0])
            raise ExecutionFailedError(
                f"RSYNC failed. {e}",
                command=command,
                returncode=127 if missing_binary else 126
            ) from e

        output = process.stdout.splitlines() if process.stdout else []
        result = TransferResult(
            success=process.returncode == 0,
            command=command,
            args=args,
            returncode=process.returncode,
            output=output,
            dry_run=dry_run,
            duration=time.time() - start_time
        )

        if dry_run:
            self.logger.info("RSYNC dry run", extra={"command": command, "output": output})

        # a negative code means rsync was killed by a signal
        if process.returncode != 0:
            raise ExecutionFailedError(
                "RSYNC failed. " + "\n".join(output),
                command=command,
                output=output,
                returncode=process.returncode
            )

        return result
