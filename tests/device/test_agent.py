"""Tests for the mod agent client."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from modbridge.core.types import AgentError
from modbridge.device.agent import AgentClient
from modbridge.device.session import DeviceChannel
from modbridge.sync.types import FileCopied, ModInstalled, SongImported
from tests.fakes import FakeDeviceSession, FakeStream

AGENT_PATH = "/data/local/tmp/mbf-agent"
UPLOAD_DIR = "/data/local/tmp/mbf-uploads"

MOD_JSON = {
    "id": "x",
    "version": "1.0.0",
    "game_version": "1.29.0",
    "is_enabled": True,
    "name": "X",
    "description": None,
    "is_core": False,
}


def lines(*objects: dict) -> list[bytes]:
    return [json.dumps(obj).encode() + b"\n" for obj in objects]


def reply(session: FakeDeviceSession, *objects: dict) -> FakeStream:
    stream = FakeStream(lines(*objects))
    stream.end()
    return session.add_stream(stream)


@pytest.fixture
def client(channel: DeviceChannel) -> AgentClient:
    return AgentClient(channel, AGENT_PATH, UPLOAD_DIR)


class TestRequests:
    """Tests for request encoding."""

    @pytest.mark.asyncio
    async def test_get_mod_status(self, session: FakeDeviceSession, client: AgentClient) -> None:
        """The request should be sent as JSON on the agent's stdin."""
        reply(
            session,
            {"type": "ModStatus", "app_info": {"version": "1.29.0"}, "installed_mods": [MOD_JSON]},
        )

        status = await client.get_mod_status()

        command, stdin = session.spawned[0]
        assert command == AGENT_PATH
        assert json.loads(stdin)["type"] == "GetModStatus"
        assert status.app_info is not None
        assert status.app_info.version == "1.29.0"
        assert status.find("x") is not None

    @pytest.mark.asyncio
    async def test_set_mods_enabled(self, session: FakeDeviceSession, client: AgentClient) -> None:
        """All statuses should be sent in one request."""
        reply(session, {"type": "Mods", "installed_mods": [MOD_JSON]})

        mods = await client.set_mods_enabled({"x": True, "y": False})

        request = json.loads(session.spawned[0][1])
        assert request == {"type": "SetModsEnabled", "statuses": {"x": True, "y": False}}
        assert [mod.id for mod in mods] == ["x"]
        assert len(session.spawned) == 1

    @pytest.mark.asyncio
    async def test_import_file_pushes_first(
        self, session: FakeDeviceSession, client: AgentClient, tmp_path: Path
    ) -> None:
        """The file should be pushed to the upload dir and imported from there."""
        path = tmp_path / "x.qmod"
        path.write_bytes(b"PK")
        reply(
            session,
            {
                "type": "ImportResult",
                "used_filename": "x.qmod",
                "result": {"type": "ImportedMod", "installed_mods": [MOD_JSON], "imported_id": "x"},
            },
        )

        result = await client.import_file(path)

        assert session.pushed == [(path, f"{UPLOAD_DIR}/x.qmod")]
        assert json.loads(session.spawned[0][1])["from_path"] == f"{UPLOAD_DIR}/x.qmod"
        assert result.source_name == "x.qmod"
        assert isinstance(result.outcome, ModInstalled)
        assert result.outcome.imported_id == "x"

    @pytest.mark.asyncio
    async def test_import_url_file_copy(
        self, session: FakeDeviceSession, client: AgentClient
    ) -> None:
        """A file copy result should map to FileCopied."""
        reply(
            session,
            {
                "type": "ImportResult",
                "used_filename": "saber.qsaber",
                "result": {
                    "type": "ImportedFileCopy",
                    "copied_to": "/sdcard/ModData/saber.qsaber",
                    "mod_id": "qosmetics",
                },
            },
        )

        result = await client.import_url("https://example.com/saber.qsaber")

        assert json.loads(session.spawned[0][1])["from_url"] == "https://example.com/saber.qsaber"
        assert session.pushed == []
        assert result.outcome == FileCopied("/sdcard/ModData/saber.qsaber", "qosmetics")

    @pytest.mark.asyncio
    async def test_import_song(self, session: FakeDeviceSession, client: AgentClient) -> None:
        """A song result should map to SongImported."""
        reply(
            session,
            {"type": "ImportResult", "used_filename": "song.zip", "result": {"type": "ImportedSong"}},
        )

        result = await client.import_url("https://example.com/song.zip")

        assert isinstance(result.outcome, SongImported)

    @pytest.mark.asyncio
    async def test_fix_player_data(self, session: FakeDeviceSession, client: AgentClient) -> None:
        """The reply should say whether there was a player data file."""
        reply(session, {"type": "FixedPlayerData", "existed": False})

        assert await client.fix_player_data() is False
        assert json.loads(session.spawned[0][1]) == {"type": "FixPlayerData"}


class TestResponseParsing:
    """Tests for reading the JSON-lines reply."""

    @pytest.mark.asyncio
    async def test_log_lines_forwarded(self, session: FakeDeviceSession, client: AgentClient) -> None:
        """Log messages should reach the callback before the final response."""
        logs: list[tuple[str, str]] = []
        client.set_on_log(lambda level, message: logs.append((level, message)))
        reply(
            session,
            {"type": "LogMsg", "level": "Info", "message": "Removing x"},
            {"type": "Mods", "installed_mods": []},
        )

        assert await client.remove_mod("x") == []
        assert logs == [("Info", "Removing x")]

    @pytest.mark.asyncio
    async def test_lines_split_across_chunks(
        self, session: FakeDeviceSession, client: AgentClient
    ) -> None:
        """A line broken over several chunks should be reassembled."""
        payload = json.dumps({"type": "Mods", "installed_mods": [MOD_JSON]}).encode()
        stream = FakeStream([payload[:10], payload[10:25], payload[25:]])
        stream.end()
        session.add_stream(stream)

        mods = await client.set_mods_enabled({"x": True})

        assert mods[0].id == "x"

    @pytest.mark.asyncio
    async def test_garbage_lines_ignored(
        self, session: FakeDeviceSession, client: AgentClient
    ) -> None:
        """Unparseable lines should be skipped."""
        stream = FakeStream([b"not json\n", *lines({"type": "Mods", "installed_mods": []})])
        stream.end()
        session.add_stream(stream)

        assert await client.set_mods_enabled({}) == []

    @pytest.mark.asyncio
    async def test_no_response_raises_last_error(
        self, session: FakeDeviceSession, client: AgentClient
    ) -> None:
        """Without a final response the last error log should be raised."""
        reply(session, {"type": "LogMsg", "level": "Error", "message": "Mod x not found"})

        with pytest.raises(AgentError, match="Mod x not found"):
            await client.remove_mod("x")

    @pytest.mark.asyncio
    async def test_unexpected_response_type(
        self, session: FakeDeviceSession, client: AgentClient
    ) -> None:
        """A response of the wrong type should be rejected."""
        reply(session, {"type": "Mods", "installed_mods": []})

        with pytest.raises(AgentError, match="expected ModStatusResponse"):
            await client.get_mod_status()

    @pytest.mark.asyncio
    async def test_channel_released_after_request(
        self, session: FakeDeviceSession, channel: DeviceChannel, client: AgentClient
    ) -> None:
        """The channel should be free again once the reply was read."""
        reply(session, {"type": "Mods", "installed_mods": []})

        await client.remove_mod("x")

        assert not channel.is_busy
