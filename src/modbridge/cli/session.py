"""Device session plumbing shared by the CLI commands."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from typing import TYPE_CHECKING, Any, TypeVar

import click

from modbridge.core.types import ModBridgeError
from modbridge.device.adb import AdbDeviceSession
from modbridge.device.agent import AgentClient
from modbridge.device.session import DeviceChannel
from modbridge.manager import ModManager
from modbridge.notifications import Notification, NotificationType, send_notification

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Coroutine

    from modbridge.core.config import DeviceConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENT_STYLES = {
    NotificationType.SUCCESS: ("✓", "green"),
    NotificationType.INFO: ("·", None),
    NotificationType.WARNING: ("!", "yellow"),
    NotificationType.ERROR: ("✗", "red"),
}


def make_event_sink(notify: bool) -> Callable[[Notification], None]:
    """Build an event sink that echoes events and optionally raises OS notifications."""

    def sink(event: Notification) -> None:
        symbol, color = EVENT_STYLES[event.type]
        click.echo(
            click.style(f"  {symbol} {event.message}", fg=color),
            err=event.type == NotificationType.ERROR,
        )
        if notify:
            send_notification(event)

    return sink


@contextlib.asynccontextmanager
async def open_manager(config: DeviceConfig, notify: bool = False) -> AsyncIterator[ModManager]:
    """Connect to the device and build a ModManager around it.

    Raises:
        click.ClickException: If the game is not installed on the device.
    """
    session = await AdbDeviceSession.connect(config)
    try:
        channel = DeviceChannel(session)
        agent = AgentClient(channel, config.agent_path, config.upload_dir)
        status = await agent.get_mod_status()
        if status.app_info is None:
            raise click.ClickException(f"{config.game_package} is not installed on the device.")

        manager = ModManager(
            channel,
            agent,
            game_version=status.app_info.version,
            status=status,
            game_package=config.game_package,
        )
        manager.set_on_event(make_event_sink(notify))
        yield manager
    finally:
        await session.close()


def run_command(main: Callable[[], Coroutine[Any, Any, T]]) -> T:
    """Run an async command body, turning device failures into CLI errors."""
    try:
        return asyncio.run(main())
    except ModBridgeError as e:
        logger.debug("Command failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
