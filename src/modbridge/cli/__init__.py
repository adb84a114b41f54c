"""Command-line interface for modbridge.

This module provides the main CLI entry point and assembles all commands.

Commands:
- status: List installed mods
- import: Import files or URLs
- enable / disable: Change which mods are enabled
- remove: Remove a mod
- logcat: Record the device log
- kill-game: Force-stop the game
- reinstall-core: Reinstall only the core mods
- uninstall-game: Uninstall the game
- fix-player-data: Repair player data permissions
- config: Show or change the saved configuration
"""

from __future__ import annotations

import logging
import sys

import click

from modbridge.cli.config import (
    config_cmd,
    get_config_dir,
    get_config_file,
    load_config,
    load_device_config,
    save_config,
)
from modbridge.cli.mods import disable, enable, import_cmd, remove, status
from modbridge.cli.tools import (
    fix_player_data,
    kill_game,
    logcat,
    reinstall_core,
    uninstall_game,
)


def setup_logging(verbose: bool) -> None:
    """Configure logging to output to stderr.

    Args:
        verbose: Log at DEBUG level instead of WARNING.
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger("modbridge")
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Handlers from an earlier invocation in the same process hold a stale stderr
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)


@click.group()
@click.version_option(package_name="modbridge")
@click.option("-s", "--serial", default=None, help="Serial of the device to use.")
@click.option("--adb", "adb_path", default=None, help="Path to the adb executable.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--notify", is_flag=True, help="Also show desktop notifications.")
@click.pass_context
def cli(
    ctx: click.Context,
    serial: str | None,
    adb_path: str | None,
    verbose: bool,
    notify: bool,
) -> None:
    """modbridge - Manage game mods on an Android headset over adb."""
    setup_logging(verbose)
    ctx.obj = {
        "config": load_device_config(serial=serial, adb_path=adb_path),
        "notify": notify,
    }


# Mod commands
cli.add_command(status)
cli.add_command(import_cmd)
cli.add_command(enable)
cli.add_command(disable)
cli.add_command(remove)

# Tool commands
cli.add_command(logcat)
cli.add_command(kill_game)
cli.add_command(reinstall_core)
cli.add_command(uninstall_game)
cli.add_command(fix_player_data)

# Config commands
cli.add_command(config_cmd)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "setup_logging",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "load_device_config",
    "save_config",
]
