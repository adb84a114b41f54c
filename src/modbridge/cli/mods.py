"""Mod commands for the modbridge CLI.

Commands:
- status: List installed mods
- import: Import files or URLs through the import queue
- enable / disable: Sync a batch of enabled-state changes
- remove: Remove a mod
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from modbridge.cli.session import open_manager, run_command
from modbridge.core.models import trim_game_version
from modbridge.sync.types import FileImport, ImportJob, UrlImport

if TYPE_CHECKING:
    from modbridge.core.models import Mod
    from modbridge.manager import ModManager

URL_PREFIXES = ("http://", "https://", "file://")


def parse_import_target(target: str) -> ImportJob:
    """Turn a command-line argument into an import job.

    Raises:
        click.BadParameter: If a local path does not exist.
    """
    if target.startswith(URL_PREFIXES):
        return UrlImport(target)
    path = Path(target).expanduser()
    if not path.is_file():
        raise click.BadParameter(f"File not found: {target}", param_hint="TARGETS")
    return FileImport(path.resolve())


def format_mod(mod: Mod) -> str:
    """Format one mod for listing."""
    marker = click.style("on ", fg="green") if mod.is_enabled else click.style("off", fg="red")
    line = f"  [{marker}] {mod.id} v{mod.version}"
    if mod.is_core:
        line += " (core)"
    if mod.game_version:
        line += f" - for {trim_game_version(mod.game_version)}"
    return line


def echo_mods(manager: ModManager) -> None:
    """Print the installed mods."""
    if not manager.mods:
        click.echo("No mods installed.")
        return
    for mod in manager.mods:
        click.echo(format_mod(mod))


@click.command()
@click.pass_obj
def status(obj: dict[str, object]) -> None:
    """List the mods installed on the device."""

    async def main() -> None:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            app_info = manager.state.status.app_info
            if app_info is not None:
                click.echo(f"Game version: {trim_game_version(app_info.version)}")
            echo_mods(manager)

    run_command(main)


@click.command("import")
@click.argument("targets", nargs=-1, required=True)
@click.pass_obj
def import_cmd(obj: dict[str, object], targets: tuple[str, ...]) -> None:
    """Import mod files, songs or URLs.

    Every TARGET is either a local file or an http(s) URL. Mods built for
    the installed game version are enabled automatically.
    """
    jobs = [parse_import_target(target) for target in targets]

    async def main() -> int:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            click.echo(f"Importing {len(jobs)} item(s)...")
            await manager.enqueue_imports(jobs)
            report = manager.queue.last_report
            if report is not None and report.truncated:
                click.echo(
                    click.style(
                        f"Device disconnected: {report.remaining} import(s) were not processed.",
                        fg="red",
                    ),
                    err=True,
                )
            return report.failed + report.remaining if report else 0

    if run_command(main):
        sys.exit(1)


def _sync_states(obj: dict[str, object], mod_ids: tuple[str, ...], enabled: bool) -> None:
    async def main() -> bool:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            for mod_id in mod_ids:
                manager.toggle(mod_id, enabled)
            result = await manager.apply_change_set()
            echo_mods(manager)
            return result is not None and result.all_successful

    if not run_command(main):
        sys.exit(1)


@click.command()
@click.argument("mod_ids", nargs=-1, required=True)
@click.pass_obj
def enable(obj: dict[str, object], mod_ids: tuple[str, ...]) -> None:
    """Enable one or more mods in a single sync."""
    _sync_states(obj, mod_ids, True)


@click.command()
@click.argument("mod_ids", nargs=-1, required=True)
@click.pass_obj
def disable(obj: dict[str, object], mod_ids: tuple[str, ...]) -> None:
    """Disable one or more mods in a single sync."""
    _sync_states(obj, mod_ids, False)


@click.command()
@click.argument("mod_id")
@click.pass_obj
def remove(obj: dict[str, object], mod_id: str) -> None:
    """Remove a mod from the device."""

    async def main() -> bool:
        async with open_manager(obj["config"], bool(obj["notify"])) as manager:
            removed = await manager.remove_mod(mod_id)
            if removed:
                click.echo(f"Removed {mod_id}")
            return removed

    if not run_command(main):
        sys.exit(1)
