"""Core module - Shared config, models and errors."""

from modbridge.core.config import DeviceConfig
from modbridge.core.models import (
    AppInfo,
    Mod,
    ModStatus,
    sort_mods,
    trim_game_version,
)
from modbridge.core.types import (
    AgentError,
    DeviceError,
    LogCaptureState,
    ModBridgeError,
)

__all__ = [
    # Config
    "DeviceConfig",
    # Models
    "AppInfo",
    "Mod",
    "ModStatus",
    "sort_mods",
    "trim_game_version",
    # Types
    "AgentError",
    "DeviceError",
    "LogCaptureState",
    "ModBridgeError",
]
