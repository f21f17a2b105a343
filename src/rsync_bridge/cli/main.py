"""
Main CLI entry point for rsync-bridge.

This module provides the command-line interface for running transfers against
the targets of a configuration file, with error handling, progress reporting
and user-friendly output.
"""

import json
import logging
import os
import sys
from typing import Any, Dict

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..__version__ import __version__
from ..core import ConfigManager, Rsync
from ..core.exceptions import ExecutionFailedError, RsyncBridgeError
from ..core.models import TransferResult

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def load_runner(ctx) -> Rsync:
    """Build an Rsync runner for the selected target."""
    config_manager = ConfigManager(ctx.obj["config_path"])
    config = config_manager.config or config_manager.load_config()

    logging.getLogger().setLevel(
        logging.DEBUG if ctx.obj["verbose"] else config.log_level.value
    )

    connection = config_manager.get_connection(ctx.obj["target"])
    return Rsync(connection, default_options=config.options)


def handle_error(ctx, error: Exception):
    """Print an error and exit with status 1."""
    if isinstance(error, RsyncBridgeError):
        console.print(f"[red]❌ Error: {escape(error.message)}[/red]")
        if isinstance(error, ExecutionFailedError) and error.returncode is not None:
            console.print(f"[red]rsync exit code: {error.returncode}[/red]")
        if ctx.obj["verbose"] and error.details:
            console.print(f"[red]Details: {escape(str(error.details))}[/red]")
    else:
        console.print(f"[red]❌ Unexpected error: {escape(str(error))}[/red]")
        if ctx.obj["verbose"]:
            import traceback

            console.print(traceback.format_exc())
    sys.exit(1)


def print_transfer_result(result: TransferResult):
    """Print a transfer result in a rich formatted display."""
    if result.dry_run:
        console.print("\n[bold yellow]🔍 Dry run completed[/bold yellow]")
    else:
        console.print("\n[bold green]✅ Transfer completed successfully![/bold green]")

    summary_table = Table(show_header=False, box=None)
    summary_table.add_column("Field", style="cyan")
    summary_table.add_column("Value", style="white")

    summary_table.add_row("Command", escape(result.command))
    summary_table.add_row("Exit code", str(result.returncode))
    summary_table.add_row("Duration", f"{result.duration:.1f} seconds")

    console.print(summary_table)

    if result.output:
        console.print("\n[bold blue]📄 rsync output[/bold blue]")
        for line in result.output:
            console.print(line, markup=False, highlight=False)


def run_transfer(description: str, transfer, output_json: bool):
    """Run a transfer callable under a spinner and report the result."""
    if output_json:
        result = transfer()
        click.echo(json.dumps(result.summary(), indent=2, default=str))
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(description + "...", total=None)
        result = transfer()
        progress.remove_task(task)

    print_transfer_result(result)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("--config", type=str, help="Path to configuration file")
@click.option("--target", type=str, help="Configured target to use")
@click.option("--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, version, config, target, verbose):
    """rsync-bridge - rsync transfers to local, SSH and Akamai targets.

    Builds escaped rsync commands for the configured targets, runs them and
    reports the outcome.
    """
    if version:
        console.print(f"rsync-bridge version {__version__}")
        sys.exit(0)

    setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["target"] = target
    ctx.obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command()
@click.argument("source")
@click.argument("destination", default="")
@click.option("--include", "include", multiple=True, help="Include pattern (repeatable)")
@click.option("--exclude", "exclude", multiple=True, help="Exclude pattern (repeatable)")
@click.option("--delete", is_flag=True, help="Delete extraneous files on the target")
@click.option(
    "--dry-run", is_flag=True, help="Show what would be transferred without making changes"
)
@click.option("--no-archive", is_flag=True, help="Do not use archive mode")
@click.option("--cwd", type=str, help="Working directory for rsync")
@click.option("--print-command", is_flag=True, help="Print the rsync command and exit")
@click.option("--json", "output_json", is_flag=True, help="Output in JSON format")
@click.pass_context
def push(ctx, source, destination, include, exclude, delete, dry_run, no_archive,
         cwd, print_command, output_json):
    """Transfer SOURCE to DESTINATION under the target's root directory."""
    overrides: Dict[str, Any] = {}
    if include:
        overrides["include"] = list(include)
    if exclude:
        overrides["exclude"] = list(exclude)
    if delete:
        overrides["delete"] = True
    if dry_run:
        overrides["dry_run"] = True
    if no_archive:
        overrides["archive"] = False
    if cwd:
        overrides["cwd"] = cwd

    try:
        rsync = load_runner(ctx)
        options = rsync.merge_options(overrides)

        if print_command:
            click.echo(rsync.run(source, destination, options, return_command=True))
            return

        action = "Dry run - showing what would be transferred" if options.dry_run else "Transferring"
        run_transfer(action, lambda: rsync.execute(source, destination, options), output_json)

    except Exception as e:
        handle_error(ctx, e)


@cli.command()
@click.argument("source")
@click.argument("destination")
@click.argument("files", nargs=-1)
@click.option("--print-command", is_flag=True, help="Print the rsync command and exit")
@click.option("--json", "output_json", is_flag=True, help="Output in JSON format")
@click.pass_context
def files(ctx, source, destination, files, print_command, output_json):
    """Transfer only FILES from SOURCE to DESTINATION, excluding everything else."""
    try:
        rsync = load_runner(ctx)

        if print_command:
            click.echo(rsync.transfer_files(source, destination, files, return_command=True))
            return

        run_transfer(
            f"Transferring {len(files)} file(s)",
            lambda: rsync.execute_files(source, destination, files),
            output_json,
        )

    except Exception as e:
        handle_error(ctx, e)


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output in JSON format")
@click.pass_context
def targets(ctx, output_json):
    """List configured targets and their destination addresses."""
    try:
        config_manager = ConfigManager(ctx.obj["config_path"])
        config = config_manager.config or config_manager.load_config()

        rows = []
        for name, target in config.targets.items():
            auth = ", ".join(sorted(target.auth)) if target.auth else "-"
            rows.append({
                "name": name,
                "type": target.type.value,
                "host": target.host or "-",
                "user": target.user or "-",
                "destination_root": target.destination_root,
                "auth": auth,
                "default": name == config.default_target,
            })

        if output_json:
            click.echo(json.dumps(rows, indent=2))
            return

        table = Table(title="🎯 Targets", show_header=True)
        table.add_column("Name", style="cyan")
        table.add_column("Type", style="white")
        table.add_column("Host", style="white")
        table.add_column("User", style="white")
        table.add_column("Root", style="yellow")
        table.add_column("Auth", style="magenta")

        for row in rows:
            name = f"{row['name']} (default)" if row["default"] else row["name"]
            table.add_row(name, row["type"], row["host"], row["user"],
                          row["destination_root"], row["auth"])

        console.print(table)

    except Exception as e:
        handle_error(ctx, e)


@cli.command()
@click.option("--output", "output_path", default="./rsync-bridge.yaml", show_default=True,
              help="Where to write the configuration file")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def init(ctx, output_path, force):
    """Write a template configuration file."""
    if os.path.exists(os.path.expanduser(output_path)) and not force:
        console.print(f"[yellow]⚠️  File already exists: {output_path}[/yellow]")
        console.print("[yellow]Use --force to overwrite it.[/yellow]")
        sys.exit(1)

    try:
        path = ConfigManager(output_path, auto_load=False).create_default_config(output_path)
        console.print(f"[green]✅ Configuration written to {path}[/green]")
    except Exception as e:
        handle_error(ctx, e)


@cli.command()
@click.pass_context
def validate(ctx):
    """Validate the configuration file and every target."""
    config_manager = ConfigManager(ctx.obj["config_path"], auto_load=False)
    issues = config_manager.validate_config()

    if issues:
        console.print("[red]❌ Configuration validation failed[/red]")
        for issue in issues:
            console.print(f"   [red]• {escape(issue)}[/red]")
        sys.exit(1)

    console.print(f"[green]✅ Configuration is valid: {config_manager.config_path}[/green]")


from .doctor import doctor
cli.add_command(doctor)


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Operation interrupted by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
