#!/usr/bin/env python3
"""Doctor CLI for rsync-bridge."""

import json
import platform
import re
import subprocess
import sys
from typing import Any, Dict, List, Optional

import click
import yaml
from rich.console import Console
from rich.table import Table

from ..__version__ import MINIMUM_RSYNC_VERSION, __version__
from ..core import ConfigManager

console = Console()

COMMANDS = {
    "rsync": {"args": ["--version"], "required": True, "purpose": "File synchronization"},
    "ssh": {"args": ["-V"], "required": False, "version_on_stderr": True, "purpose": "Remote shell for SSH key targets"},
}


def parse_version(text: str) -> Optional[str]:
    """Extract the first dotted version number from tool output."""
    match = re.search(r"(\d+\.\d+(?:\.\d+)?)", text or "")
    return match.group(1) if match else None


def version_tuple(version: str) -> tuple:
    return tuple(int(part) for part in version.split("."))


def check_system_commands() -> Dict[str, Dict[str, Any]]:
    """Check availability of the external commands rsync-bridge runs."""
    results = {}

    for cmd, info in COMMANDS.items():
        try:
            result = subprocess.run(
                [cmd] + info["args"], capture_output=True, text=True, timeout=5
            )
            # ssh prints its version to stderr
            banner = (result.stdout or result.stderr).split("\n")[0]
            available = result.returncode == 0 or (
                info.get("version_on_stderr", False) and bool(parse_version(result.stderr))
            )
            version = parse_version(banner)

            status = "ok"
            if cmd == "rsync" and version and version_tuple(version) < version_tuple(MINIMUM_RSYNC_VERSION):
                status = "warning"

            results[cmd] = {
                "available": available,
                "version": version,
                "required": info["required"],
                "purpose": info["purpose"],
                "status": status if available else ("critical" if info["required"] else "warning"),
            }
        except (subprocess.TimeoutExpired, OSError):
            results[cmd] = {
                "available": False,
                "version": None,
                "required": info["required"],
                "purpose": info["purpose"],
                "status": "critical" if info["required"] else "warning",
            }

    return results


def check_configuration(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Check the rsync-bridge configuration file and its targets."""
    config_manager = ConfigManager(config_path, auto_load=False)

    if not config_manager.config_path:
        return {
            "config_found": False,
            "status": "warning",
            "message": "No configuration file found",
        }

    issues = config_manager.validate_config()

    return {
        "config_found": True,
        "config_path": config_manager.config_path,
        "targets": config_manager.list_targets(),
        "issues": issues,
        "status": "warning" if issues else "ok",
    }


def get_recommendations(diagnostics: Dict[str, Any]) -> List[str]:
    """Turn diagnostic results into recommendations."""
    recommendations = []

    for cmd, info in diagnostics["system_commands"].items():
        if not info["available"]:
            recommendations.append(f"Install {cmd} ({info['purpose']})")
        elif info["status"] == "warning" and cmd == "rsync":
            recommendations.append(
                f"Upgrade rsync to {MINIMUM_RSYNC_VERSION} or newer (found {info['version']})"
            )

    configuration = diagnostics["configuration"]
    if not configuration.get("config_found"):
        recommendations.append("Create a configuration file with 'rsync-bridge init'")
    for issue in configuration.get("issues", []):
        recommendations.append(f"Fix configuration: {issue}")

    return recommendations


def generate_report(diagnostics: Dict[str, Any]) -> None:
    """Display the diagnostic report."""
    console.print("\n[bold blue]📊 rsync-bridge Diagnostic Report[/bold blue]")
    console.print(f"Version: {__version__}")
    console.print(f"Platform: {diagnostics['platform']}\n")

    commands_table = Table(title="🔧 System Commands")
    commands_table.add_column("Command", style="cyan")
    commands_table.add_column("Status", style="green")
    commands_table.add_column("Version", style="yellow")
    commands_table.add_column("Purpose", style="blue")

    for cmd, info in diagnostics["system_commands"].items():
        status = "✅ Available" if info["available"] else "❌ Missing"
        commands_table.add_row(cmd, status, info["version"] or "-", info["purpose"])

    console.print(commands_table)

    configuration = diagnostics["configuration"]
    console.print("\n[bold]⚙️  Configuration[/bold]")
    if configuration.get("config_found"):
        console.print(f"  Path: {configuration['config_path']}")
        console.print(f"  Targets: {', '.join(configuration['targets'])}")
    else:
        console.print(f"  [yellow]{configuration['message']}[/yellow]")


@click.command()
@click.option(
    "--output",
    type=click.Choice(["console", "json", "yaml"]),
    default="console",
    help="Output format",
)
@click.pass_context
def doctor(ctx, output: str):
    """Check that rsync and ssh are installed and the configuration is valid."""
    config_path = (ctx.obj or {}).get("config_path")

    diagnostics = {
        "platform": platform.platform(),
        "python_version": platform.python_version(),
        "system_commands": check_system_commands(),
        "configuration": check_configuration(config_path),
    }

    if output == "json":
        click.echo(json.dumps(diagnostics, indent=2, default=str))
    elif output == "yaml":
        click.echo(yaml.safe_dump(diagnostics, default_flow_style=False))
    else:
        generate_report(diagnostics)

        recommendations = get_recommendations(diagnostics)
        if recommendations:
            console.print("\n[bold]💡 Recommendations[/bold]")
            for i, rec in enumerate(recommendations, 1):
                console.print(f"  {i}. {rec}")
        else:
            console.print("\n[green]🎉 No issues found! Your system is ready for rsync-bridge.[/green]")

    critical = [
        info for info in diagnostics["system_commands"].values() if info["status"] == "critical"
    ]
    if critical:
        sys.exit(1)
