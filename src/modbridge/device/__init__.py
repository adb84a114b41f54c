"""Device layer - ADB session, serialized channel and mod agent client."""

from modbridge.device.adb import AdbDeviceSession, AdbStream
from modbridge.device.agent import AgentClient
from modbridge.device.session import DeviceChannel, DeviceSession, DeviceStream

__all__ = [
    "AdbDeviceSession",
    "AdbStream",
    "AgentClient",
    "DeviceChannel",
    "DeviceSession",
    "DeviceStream",
]
