"""Shared configuration classes for modbridge.

This module defines the device configuration used by the ADB session,
the agent client and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_GAME_PACKAGE = "com.beatgames.beatsaber"
DEFAULT_AGENT_PATH = "/data/local/tmp/mbf-agent"
DEFAULT_UPLOAD_DIR = "/data/local/tmp/mbf-uploads"


@dataclass
class DeviceConfig:
    """Configuration for talking to a device over ADB.

    Attributes:
        adb_path: Path to (or name of) the adb executable.
        serial: Serial of the target device, None to let adb pick the only one.
        agent_path: Location of the mod agent binary on the device.
        game_package: Android package name of the modded game.
        upload_dir: Device directory that receives pushed files before import.
        command_timeout: Timeout in seconds for one-shot commands.
    """

    adb_path: str = "adb"
    serial: str | None = None
    agent_path: str = DEFAULT_AGENT_PATH
    game_package: str = DEFAULT_GAME_PACKAGE
    upload_dir: str = DEFAULT_UPLOAD_DIR
    command_timeout: float = 60.0

    def __post_init__(self) -> None:
        """Normalize device paths and empty serials."""
        self.upload_dir = self.upload_dir.rstrip("/")
        if not self.serial:
            self.serial = None

    @property
    def adb_prefix(self) -> list[str]:
        """Get the adb argv prefix, including the device selector.

        Returns:
            Argument list such as ``["adb", "-s", "1WMHH000000000"]``.
        """
        if self.serial:
            return [self.adb_path, "-s", self.serial]
        return [self.adb_path]

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> DeviceConfig:
        """Build a config from a saved config mapping, ignoring unknown keys."""
        config = cls()
        for key in ("adb_path", "serial", "agent_path", "game_package", "upload_dir"):
            if data.get(key):
                setattr(config, key, data[key])
        if data.get("command_timeout"):
            config.command_timeout = float(data["command_timeout"])
        config.__post_init__()
        return config
