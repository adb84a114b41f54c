"""Device session backed by the adb executable.

This module provides:
- AdbStream: DeviceStream over the stdout of an ``adb shell`` process
- AdbDeviceSession: DeviceSession that shells out to ``adb`` via asyncio

The session watches ``adb wait-for-disconnect`` in a background task and
resolves its ``disconnected`` future once the device goes away.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
from typing import TYPE_CHECKING

from modbridge.core.types import DeviceError

if TYPE_CHECKING:
    from pathlib import Path

    from modbridge.core.config import DeviceConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def command_failure_suggestion(stdout: str, stderr: str) -> str:
    """Suggest a fix for a failed adb command based on its output."""
    text = f"{stdout}\n{stderr}".lower()
    if "unauthorized" in text:
        return "Unlock the headset and accept the USB debugging prompt."
    if "no devices/emulators found" in text:
        return "Connect a device with USB debugging enabled and retry."
    if "more than one device/emulator" in text:
        return "Pick a device with --serial."
    if "device offline" in text:
        return "Reconnect the USB cable or restart the adb server."
    return "Run again with --verbose to see the full command output."


class AdbStream:
    """Output stream of a spawned ``adb shell`` process."""

    def __init__(self, process: asyncio.subprocess.Process, command: str) -> None:
        self._process = process
        self._command = command
        self._killed = False

    async def read_next_chunk(self) -> bytes | None:
        """Read the next chunk of stdout, None at end-of-data."""
        assert self._process.stdout is not None
        chunk = await self._process.stdout.read(CHUNK_SIZE)
        if not chunk:
            await self._process.wait()
            return None
        return chunk

    async def kill(self) -> None:
        """Terminate the process. Output already in flight stays readable."""
        if self._killed or self._process.returncode is not None:
            return
        self._killed = True
        logger.debug("Killing device process: %s", self._command)
        with contextlib.suppress(ProcessLookupError):
            self._process.terminate()


class AdbDeviceSession:
    """DeviceSession implemented on top of the adb executable.

    Usage:
        session = await AdbDeviceSession.connect(DeviceConfig(serial="..."))
        print(await session.execute("getprop ro.product.model"))
        await session.close()
    """

    def __init__(self, config: DeviceConfig) -> None:
        """Initialize the session.

        Args:
            config: Device configuration (adb path, serial, timeouts).
        """
        self._config = config
        self.disconnected: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._watcher: asyncio.Task[None] | None = None

    @classmethod
    async def connect(cls, config: DeviceConfig) -> AdbDeviceSession:
        """Wait for the device and start watching for disconnection.

        Raises:
            DeviceError: If no device shows up within the command timeout.
        """
        session = cls(config)
        try:
            await asyncio.wait_for(
                session._run("wait-for-device"),
                timeout=config.command_timeout,
            )
        except TimeoutError as e:
            raise DeviceError("Timed out waiting for a device") from e
        session._watcher = asyncio.create_task(
            session._watch_disconnect(), name="AdbDisconnectWatcher"
        )
        logger.info("Connected to device %s", config.serial or "(default)")
        return session

    @property
    def config(self) -> DeviceConfig:
        """Get the device configuration."""
        return self._config

    async def _run(self, *args: str, stdin: bytes | None = None) -> str:
        """Run an adb subcommand to completion.

        Raises:
            DeviceError: If adb exits with a non-zero status.
        """
        argv = [*self._config.adb_prefix, *args]
        logger.debug("Running %s", shlex.join(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if stdin is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise DeviceError(f"adb executable not found: {self._config.adb_path}") from e

        stdout, stderr = await process.communicate(stdin)
        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")
        if process.returncode != 0:
            raise DeviceError(
                f"Command failed ({process.returncode}): {shlex.join(args)}\n"
                f"{err.strip() or out.strip()}\n"
                f"{command_failure_suggestion(out, err)}"
            )
        return out

    async def _watch_disconnect(self) -> None:
        try:
            await self._run("wait-for-disconnect")
        except asyncio.CancelledError:
            raise
        except DeviceError:
            logger.exception("Disconnect watcher failed")
        logger.warning("Device disconnected")
        if not self.disconnected.done():
            self.disconnected.set_result(None)

    async def execute(self, command: str) -> str:
        """Run a shell command on the device and return its output.

        Raises:
            DeviceError: If the command fails or exceeds the command timeout.
        """
        try:
            return await asyncio.wait_for(
                self._run("shell", command),
                timeout=self._config.command_timeout,
            )
        except TimeoutError as e:
            raise DeviceError(f"Timed out running: {command}") from e

    async def spawn(self, command: str, stdin: bytes | None = None) -> AdbStream:
        """Start a shell command on the device and stream its stdout."""
        argv = [*self._config.adb_prefix, "shell", command]
        logger.debug("Spawning %s", shlex.join(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise DeviceError(f"adb executable not found: {self._config.adb_path}") from e

        if stdin is not None:
            assert process.stdin is not None
            process.stdin.write(stdin)
            await process.stdin.drain()
            process.stdin.close()
        return AdbStream(process, command)

    async def push(self, local_path: Path, remote_path: str) -> None:
        """Copy a local file onto the device."""
        await self._run("push", str(local_path), remote_path)

    async def close(self) -> None:
        """Stop watching for disconnection."""
        if self._watcher is not None:
            self._watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._watcher
            self._watcher = None
        if not self.disconnected.done():
            self.disconnected.set_result(None)
