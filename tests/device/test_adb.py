"""Tests for the adb-backed device session."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from modbridge.core.config import DeviceConfig
from modbridge.core.types import DeviceError
from modbridge.device.adb import AdbDeviceSession, AdbStream, command_failure_suggestion


def make_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.returncode = returncode
    return process


class TestCommandFailureSuggestion:
    """Tests for command_failure_suggestion."""

    def test_unauthorized(self) -> None:
        """An unauthorized device should point at the debugging prompt."""
        assert "USB debugging" in command_failure_suggestion("", "error: device unauthorized.")

    def test_multiple_devices(self) -> None:
        """Several devices should point at --serial."""
        assert "--serial" in command_failure_suggestion(
            "", "error: more than one device/emulator"
        )

    def test_unknown(self) -> None:
        """Anything else should suggest verbose output."""
        assert "--verbose" in command_failure_suggestion("", "segfault")


class TestAdbStream:
    """Tests for AdbStream."""

    @pytest.mark.asyncio
    async def test_reads_until_eof(self) -> None:
        """Chunks should be returned until stdout is exhausted."""
        process = MagicMock()
        process.stdout.read = AsyncMock(side_effect=[b"abc", b""])
        process.wait = AsyncMock(return_value=0)

        stream = AdbStream(process, "logcat")

        assert await stream.read_next_chunk() == b"abc"
        assert await stream.read_next_chunk() is None
        process.wait.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_kill_terminates_once(self) -> None:
        """Repeated kills should only signal the process once."""
        process = MagicMock()
        process.returncode = None

        stream = AdbStream(process, "logcat")
        await stream.kill()
        await stream.kill()

        process.terminate.assert_called_once()

    @pytest.mark.asyncio
    async def test_kill_after_exit_is_noop(self) -> None:
        """An exited process should not be signalled."""
        process = MagicMock()
        process.returncode = 0

        await AdbStream(process, "logcat").kill()

        process.terminate.assert_not_called()


class TestAdbDeviceSession:
    """Tests for AdbDeviceSession commands."""

    @pytest.mark.asyncio
    async def test_execute_uses_serial(self) -> None:
        """Shell commands should target the configured device."""
        session = AdbDeviceSession(DeviceConfig(serial="abc"))
        create = AsyncMock(return_value=make_process(stdout=b"ok\n"))

        with patch("modbridge.device.adb.asyncio.create_subprocess_exec", create):
            assert await session.execute("getprop ro.product.model") == "ok\n"

        assert create.call_args[0] == ("adb", "-s", "abc", "shell", "getprop ro.product.model")

    @pytest.mark.asyncio
    async def test_failure_raises_with_suggestion(self) -> None:
        """A non-zero exit should raise a DeviceError with a hint."""
        session = AdbDeviceSession(DeviceConfig())
        create = AsyncMock(
            return_value=make_process(stderr=b"error: device unauthorized", returncode=1)
        )

        with patch("modbridge.device.adb.asyncio.create_subprocess_exec", create):
            with pytest.raises(DeviceError, match="USB debugging"):
                await session.execute("ls")

    @pytest.mark.asyncio
    async def test_missing_adb(self) -> None:
        """A missing executable should raise a DeviceError."""
        session = AdbDeviceSession(DeviceConfig(adb_path="/missing/adb"))
        create = AsyncMock(side_effect=FileNotFoundError)

        with patch("modbridge.device.adb.asyncio.create_subprocess_exec", create):
            with pytest.raises(DeviceError, match="/missing/adb"):
                await session.push(Path("x.qmod"), "/data/local/tmp/x.qmod")

    @pytest.mark.asyncio
    async def test_close_resolves_disconnected(self) -> None:
        """Closing should mark the session as disconnected."""
        session = AdbDeviceSession(DeviceConfig())
        await session.close()
        assert session.disconnected.done()
