"""User-facing events and cross-platform system notifications.

This module provides:
- Notification / NotificationType: The events the core emits for the UI layer
- Builders for every event the import and sync flows produce
- send_notification: Native OS delivery (notify-send, osascript, PowerShell toast)
"""

from __future__ import annotations

import logging
import platform
import subprocess
from dataclasses import dataclass
from enum import Enum, auto

from modbridge.core.models import trim_game_version

logger = logging.getLogger(__name__)

APP_NAME = "modbridge"


class NotificationType(Enum):
    """Type of notification."""

    SUCCESS = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass(frozen=True)
class Notification:
    """Represents a user-facing event to display."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO


# =============================================================================
# Event builders
# =============================================================================


def mod_installed(mod_id: str, version: str) -> Notification:
    """A mod was imported and enabled."""
    return Notification(
        title="Mod installed",
        message=f"Successfully downloaded and installed {mod_id} v{version}",
        type=NotificationType.SUCCESS,
    )


def mod_not_enabled(mod_id: str, game_version: str) -> Notification:
    """A mod was imported but left disabled because it targets another game version."""
    return Notification(
        title="Mod not enabled",
        message=(
            f"The mod `{mod_id}` was not enabled automatically as it is not "
            f"designed for game version v{trim_game_version(game_version)}."
        ),
        type=NotificationType.WARNING,
    )


def file_copied(source_name: str, destination_path: str, owner_mod_id: str) -> Notification:
    """An imported file was copied to a path requested by a mod."""
    return Notification(
        title="File copied",
        message=(
            f"Successfully copied {source_name} to {destination_path} "
            f"due to request from {owner_mod_id}"
        ),
        type=NotificationType.SUCCESS,
    )


def song_imported(source_name: str) -> Notification:
    """An imported file was added as a custom song."""
    return Notification(
        title="Song imported",
        message=f"Successfully imported song {source_name}",
        type=NotificationType.SUCCESS,
    )


def import_failed(error: Exception | str) -> Notification:
    """An import job failed."""
    return Notification(
        title="Import failed",
        message=f"Failed to import file: {error}",
        type=NotificationType.ERROR,
    )


def unsupported_drop_source() -> Notification:
    """A dropped ``file:///`` URL cannot be read from the browser sandbox."""
    return Notification(
        title="Import failed",
        message=(
            "Cannot process dropped file from this source, "
            "drag from the file picker instead."
        ),
        type=NotificationType.ERROR,
    )


def sync_failed(message: str) -> Notification:
    """Applying a change set failed or did not fully succeed."""
    return Notification(
        title="Failed to sync mods",
        message=message,
        type=NotificationType.ERROR,
    )


def operation_succeeded(message: str) -> Notification:
    """A device tool finished."""
    return Notification(title="Done", message=message, type=NotificationType.SUCCESS)


def operation_failed(message: str) -> Notification:
    """A device tool failed."""
    return Notification(title="Operation failed", message=message, type=NotificationType.ERROR)


# =============================================================================
# OS delivery
# =============================================================================


def _escape_powershell(text: str) -> str:
    """Escape text for a double-quoted PowerShell string."""
    return text.replace("`", "``").replace('"', '`"').replace("$", "`$")


def _notify_windows(notification: Notification) -> bool:
    """Send notification on Windows using a PowerShell toast."""
    try:
        title = _escape_powershell(notification.title)
        message = _escape_powershell(notification.message)
        ps_script = f'''
        [Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
        $template = [Windows.UI.Notifications.ToastNotificationManager]::GetTemplateContent(1)
        $texts = $template.GetElementsByTagName("text")
        $texts.Item(0).AppendChild($template.CreateTextNode("{title}")) | Out-Null
        $texts.Item(1).AppendChild($template.CreateTextNode("{message}")) | Out-Null
        $toast = [Windows.UI.Notifications.ToastNotification]::new($template)
        [Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{APP_NAME}").Show($toast)
        '''
        subprocess.run(
            ["powershell", "-ExecutionPolicy", "Bypass", "-Command", ps_script],
            capture_output=True,
            check=False,
            creationflags=subprocess.CREATE_NO_WINDOW if hasattr(subprocess, "CREATE_NO_WINDOW") else 0,
        )
        return True
    except Exception as e:
        logger.debug("Windows notification failed: %s", e)
        return False


def _notify_macos(notification: Notification) -> bool:
    """Send notification on macOS using osascript."""
    try:
        title = notification.title.replace('"', '\\"')
        message = notification.message.replace('"', '\\"')

        script = f'display notification "{message}" with title "{title}"'
        subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            check=True,
        )
        return True
    except Exception as e:
        logger.debug("macOS notification failed: %s", e)
        return False


def _notify_linux(notification: Notification) -> bool:
    """Send notification on Linux using notify-send."""
    try:
        urgency_map = {
            NotificationType.SUCCESS: "low",
            NotificationType.INFO: "normal",
            NotificationType.WARNING: "normal",
            NotificationType.ERROR: "critical",
        }
        urgency = urgency_map.get(notification.type, "normal")

        subprocess.run(
            [
                "notify-send",
                "--urgency", urgency,
                "--app-name", APP_NAME,
                notification.title,
                notification.message,
            ],
            capture_output=True,
            check=True,
        )
        return True
    except FileNotFoundError:
        logger.debug("notify-send not found")
        return False
    except Exception as e:
        logger.debug("Linux notification failed: %s", e)
        return False


def send_notification(notification: Notification) -> bool:
    """Send a system notification.

    Uses native OS notification system:
    - Windows: Toast notification via PowerShell
    - macOS: Notification Center via osascript
    - Linux: notify-send

    Args:
        notification: The notification to send.

    Returns:
        True if notification was sent, False if failed or unavailable.
    """
    system = platform.system()

    if system == "Windows":
        return _notify_windows(notification)
    elif system == "Darwin":
        return _notify_macos(notification)
    elif system == "Linux":
        return _notify_linux(notification)
    else:
        logger.warning("Notifications not supported on %s", system)
        return False
