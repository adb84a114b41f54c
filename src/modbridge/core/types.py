"""Shared types for modbridge.

This module defines the exception root and the enums used by both the
device layer and the sync layer.
"""

from __future__ import annotations

from enum import Enum


class ModBridgeError(Exception):
    """Base exception for modbridge errors."""


class DeviceError(ModBridgeError):
    """A command against the device failed or the device is gone."""


class AgentError(ModBridgeError):
    """The mod agent reported a failure or produced no response."""


class LogCaptureState(str, Enum):
    """State of a log capture session.

    IDLE -> CAPTURING -> DRAINING_AFTER_CANCEL -> IDLE
    """

    IDLE = "idle"
    CAPTURING = "capturing"
    DRAINING_AFTER_CANCEL = "draining_after_cancel"
