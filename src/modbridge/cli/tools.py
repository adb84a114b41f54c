"""Device tool commands for the modbridge CLI.

Commands:
- logcat: Record the device log to a file
- kill-game: Force-stop the game
- reinstall-core: Remove every mod and reinstall the core mods
- uninstall-game: Uninstall the game
- fix-player-data: Repair player data permissions
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from modbridge.cli.session import open_manager, run_command


async def _wait_for_stop(duration: float | None) -> None:
    if duration is not None:
        await asyncio.sleep(duration)
        return
    click.echo("Recording device log, press Enter to stop...")
    await asyncio.to_thread(sys.stdin.readline)


@click.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("logcat.log"),
    show_default=True,
    help="File to write the captured log to.",
)
@click.option(
    "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds instead of waiting for Enter.",
)
@click.pass_obj
def logcat(obj: dict[str, object], output: Path, duration: float | None) -> None:
    """Record the device log while you reproduce an issue."""

    async def main() -> bytes | None:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            await manager.start_log_capture()
            await _wait_for_stop(duration)
            click.echo("Stopping log capture...")
            return await manager.cancel_log_capture()

    log = run_command(main)
    if log is None:
        raise click.ClickException("Failed to get device log")
    output.write_bytes(log)
    click.echo(f"Wrote {len(log)} bytes to {output}")


@click.command("kill-game")
@click.pass_obj
def kill_game(obj: dict[str, object]) -> None:
    """Force-stop the game so mod changes take effect."""

    async def main() -> bool:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            return await manager.kill_game()

    if not run_command(main):
        sys.exit(1)


@click.command("reinstall-core")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def reinstall_core(obj: dict[str, object], yes: bool) -> None:
    """Delete every mod and install only the core mods."""
    if not yes:
        click.confirm("This removes all non-core mods. Continue?", abort=True)

    async def main() -> bool:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            return await manager.reinstall_core_mods()

    if not run_command(main):
        sys.exit(1)


@click.command("uninstall-game")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def uninstall_game(obj: dict[str, object], yes: bool) -> None:
    """Uninstall the game together with all of its mods."""
    if not yes:
        click.confirm("This uninstalls the game and removes all mods. Continue?", abort=True)

    async def main() -> bool:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            return await manager.uninstall_game()

    if not run_command(main):
        sys.exit(1)


@click.command("fix-player-data")
@click.pass_obj
def fix_player_data(obj: dict[str, object]) -> None:
    """Fix the permissions of the player data file."""

    async def main() -> bool:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            return await manager.fix_player_data()

    if not run_command(main):
        sys.exit(1)
