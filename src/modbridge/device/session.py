"""Device session protocols and the serialized channel.

This module provides:
- DeviceStream: Protocol for a long-running stream spawned on the device
- DeviceSession: Protocol for the single logical connection to the device
- DeviceChannel: Exclusive lock around a session for multi-step exchanges

Every exchange whose responses must be read in order (agent requests,
one-shot commands, the kill-and-drain tail of a log capture) runs inside
``DeviceChannel.exclusive()``. The transport pairs requests and responses
strictly in order, so two such exchanges must never interleave.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)


class DeviceStream(Protocol):
    """A subprocess-like stream running on the device."""

    async def read_next_chunk(self) -> bytes | None:
        """Read the next chunk of output.

        Returns:
            The chunk, or None once the stream reached end-of-data.
        """
        ...

    async def kill(self) -> None:
        """Ask the underlying process to terminate."""
        ...


class DeviceSession(Protocol):
    """The single logical connection to the target device.

    Attributes:
        disconnected: Future resolving once when the session becomes unusable.
    """

    disconnected: asyncio.Future[None]

    async def execute(self, command: str) -> str:
        """Run a shell command to completion and return its output."""
        ...

    async def spawn(self, command: str, stdin: bytes | None = None) -> DeviceStream:
        """Start a long-running shell command and return its output stream."""
        ...

    async def push(self, local_path: Path, remote_path: str) -> None:
        """Copy a local file onto the device."""
        ...


class DeviceChannel:
    """Serializes exchanges over a shared device session.

    Usage:
        channel = DeviceChannel(session)
        async with channel.exclusive():
            output = await channel.session.execute("am force-stop ...")
    """

    def __init__(self, session: DeviceSession) -> None:
        self._session = session
        self._lock = asyncio.Lock()

    @property
    def session(self) -> DeviceSession:
        """Get the wrapped session."""
        return self._session

    @property
    def is_busy(self) -> bool:
        """Check if an exchange currently holds the channel."""
        return self._lock.locked()

    @contextlib.asynccontextmanager
    async def exclusive(self) -> AsyncIterator[DeviceSession]:
        """Hold the channel for the duration of one exchange."""
        async with self._lock:
            yield self._session

    async def execute(self, command: str) -> str:
        """Run a one-shot command while holding the channel."""
        async with self._lock:
            logger.debug("Executing on device: %s", command)
            return await self._session.execute(command)
