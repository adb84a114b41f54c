"""Cancellable capture of the device log.

This module provides:
- LogCaptureSession: Records ``logcat`` output until cancelled

State machine:
    IDLE ──start()──► CAPTURING ──cancel()──► DRAINING_AFTER_CANCEL ──EOF──► IDLE

Once cancellation is observed the stream is killed exactly once and then
read until it reports end-of-data. Output left unread on the shared
connection would desynchronize every later request, so the capture only
finalizes after the stream confirmed it is empty. The kill-and-drain phase
holds the device channel so no other exchange can interleave with it.

Read errors are logged and swallowed; the stream is then killed if it was
not already, and the capture finalizes with no result.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from modbridge.core.types import LogCaptureState
from modbridge.sync.types import CancellationToken, LogCaptureStateError

if TYPE_CHECKING:
    from modbridge.device.session import DeviceChannel, DeviceStream

logger = logging.getLogger(__name__)

LOGCAT_COMMAND = "logcat"
LOGCAT_CLEAR_COMMAND = "logcat -c"


class LogCaptureSession:
    """One logical log capture per device session.

    Usage:
        capture = LogCaptureSession(channel)
        await capture.start()
        # ... reproduce the issue ...
        capture.cancel()
        log = await capture.wait()
    """

    def __init__(self, channel: DeviceChannel) -> None:
        """Initialize the capture session.

        Args:
            channel: Serialized channel to the device.
        """
        self._channel = channel
        self._state = LogCaptureState.IDLE
        self._token: CancellationToken | None = None
        self._task: asyncio.Task[None] | None = None
        self._buffer = bytearray()
        self._result: bytes | None = None
        self._kill_count = 0

    @property
    def state(self) -> LogCaptureState:
        """Get current capture state."""
        return self._state

    @property
    def result(self) -> bytes | None:
        """Get the finalized log of the last capture, if any."""
        return self._result

    @property
    def bytes_captured(self) -> int:
        """Get the number of bytes buffered by the running capture."""
        return len(self._buffer)

    @property
    def kill_count(self) -> int:
        """Get how many kill requests the last capture issued."""
        return self._kill_count

    async def start(self) -> None:
        """Clear the device log backlog and begin capturing.

        Raises:
            LogCaptureStateError: If a capture is already running.
            DeviceError: If the log could not be cleared or spawned.
        """
        if self._state != LogCaptureState.IDLE:
            raise LogCaptureStateError(f"Cannot start log capture while {self._state.value}")

        self._result = None
        self._buffer = bytearray()
        self._kill_count = 0

        logger.info("Starting `%s` process", LOGCAT_COMMAND)
        async with self._channel.exclusive() as session:
            await session.execute(LOGCAT_CLEAR_COMMAND)
            stream = await session.spawn(LOGCAT_COMMAND)

        self._token = CancellationToken()
        self._state = LogCaptureState.CAPTURING
        self._task = asyncio.create_task(
            self._capture(stream, self._token), name="LogCapture"
        )

    def cancel(self) -> None:
        """Request the capture to stop.

        The capture keeps draining the stream after this returns; await
        ``wait()`` for the finalized log.

        Raises:
            LogCaptureStateError: If no capture is running.
        """
        if self._state != LogCaptureState.CAPTURING or self._token is None:
            raise LogCaptureStateError(f"Cannot cancel log capture while {self._state.value}")
        self._state = LogCaptureState.DRAINING_AFTER_CANCEL
        self._token.cancel()

    async def wait(self) -> bytes | None:
        """Wait for the capture to finalize and return the log."""
        if self._task is not None:
            await self._task
        return self._result

    async def _capture(self, stream: DeviceStream, token: CancellationToken) -> None:
        pending: asyncio.Future[bytes | None] | None = None
        reached_eof = False
        try:
            ended, pending = await self._read_until_cancelled(stream, token)
            if not ended:
                await self._kill_and_drain(stream, pending)
                pending = None
            reached_eof = True
            self._result = bytes(self._buffer)
            logger.info("Captured %d bytes of device log", len(self._result))
        except Exception:
            logger.exception("Failed to get device log")
            self._result = None
        finally:
            if pending is not None and not pending.done():
                pending.cancel()
            if not reached_eof and self._kill_count == 0:
                await self._kill_after_error(stream)
            self._buffer = bytearray()
            self._state = LogCaptureState.IDLE

    async def _read_until_cancelled(
        self,
        stream: DeviceStream,
        token: CancellationToken,
    ) -> tuple[bool, asyncio.Future[bytes | None] | None]:
        """Append chunks until cancellation or end-of-data.

        Returns:
            Whether the stream already ended, and a read still in flight
            when cancellation arrived, if any.
        """
        while True:
            read = asyncio.ensure_future(stream.read_next_chunk())
            cancelled = asyncio.ensure_future(token.wait())
            await asyncio.wait({read, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            cancelled.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cancelled

            if not read.done():
                return False, read

            chunk = read.result()
            if chunk is None:
                logger.info("Log stream ended before the capture was cancelled")
                return True, None
            self._buffer += chunk

            if token.cancelled:
                return False, None

    async def _kill_after_error(self, stream: DeviceStream) -> None:
        """Stop a stream abandoned after a read error so the process does not linger."""
        logger.info("Killing `%s` process after read error", LOGCAT_COMMAND)
        self._kill_count += 1
        try:
            await stream.kill()
        except Exception:
            logger.exception("Failed to kill `%s` process", LOGCAT_COMMAND)

    async def _kill_and_drain(
        self,
        stream: DeviceStream,
        pending: asyncio.Future[bytes | None] | None,
    ) -> None:
        """Kill the stream once and read it until it reports end-of-data."""
        async with self._channel.exclusive():
            logger.info("Killing `%s` process", LOGCAT_COMMAND)
            self._kill_count += 1
            await stream.kill()

            while True:
                chunk = await pending if pending is not None else await stream.read_next_chunk()
                pending = None
                if chunk is None:
                    break
                self._buffer += chunk
