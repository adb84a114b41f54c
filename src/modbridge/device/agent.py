"""Client for the on-device mod agent.

This module provides:
- AgentClient: Sends one JSON request per agent invocation and parses the
  JSON-lines reply into modbridge types

Each request holds the device channel from the moment the agent is spawned
until its output has been read to end-of-data, so that no other exchange
can interleave with it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

from modbridge.core.models import ModStatus
from modbridge.core.types import AgentError
from modbridge.device.messages import (
    FixedPlayerDataResponse,
    FixPlayerDataRequest,
    GetModStatusRequest,
    ImportedFileCopy,
    ImportedMod,
    ImportRequest,
    ImportResultResponse,
    ImportUrlRequest,
    LogMsgResponse,
    ModsResponse,
    ModStatusResponse,
    QuickFixRequest,
    RemoveModRequest,
    SetModsEnabledRequest,
    response_adapter,
)
from modbridge.sync.types import (
    FileCopied,
    ImportOutcome,
    ImportResult,
    ModInstalled,
    SongImported,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

    from modbridge.core.models import Mod
    from modbridge.device.messages import AgentRequest
    from modbridge.device.session import DeviceChannel, DeviceStream

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

LOG_LEVELS = {
    "Trace": logging.DEBUG,
    "Debug": logging.DEBUG,
    "Info": logging.INFO,
    "Warn": logging.WARNING,
    "Error": logging.ERROR,
}


class AgentClient:
    """Runs requests against the mod agent over a device channel.

    Usage:
        agent = AgentClient(channel, config.agent_path, config.upload_dir)
        status = await agent.get_mod_status()
        mods = await agent.set_mods_enabled({"my-mod": True})
    """

    def __init__(
        self,
        channel: DeviceChannel,
        agent_path: str,
        upload_dir: str,
        on_log: Callable[[str, str], None] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            channel: Serialized channel to the device.
            agent_path: Location of the agent binary on the device.
            upload_dir: Device directory that receives pushed files.
            on_log: Optional callback (level, message) for agent log lines.
        """
        self._channel = channel
        self._agent_path = agent_path
        self._upload_dir = upload_dir
        self._on_log = on_log

    def set_on_log(self, callback: Callable[[str, str], None] | None) -> None:
        """Set callback for agent log lines."""
        self._on_log = callback

    async def _request(self, request: AgentRequest, from_path: Path | None = None) -> BaseModel:
        """Run one request and return its final response.

        Args:
            request: The request to send.
            from_path: Local file to push before running the request.

        Raises:
            AgentError: If the agent produced no final response.
        """
        payload = request.model_dump_json().encode("utf-8")
        async with self._channel.exclusive() as session:
            if from_path is not None:
                await session.push(from_path, f"{self._upload_dir}/{from_path.name}")
            logger.debug("Agent request: %s", request.model_dump_json())
            stream = await session.spawn(self._agent_path, stdin=payload)
            return await self._read_response(stream)

    async def _read_response(self, stream: DeviceStream) -> BaseModel:
        final: BaseModel | None = None
        errors: list[str] = []
        buffer = b""

        while True:
            chunk = await stream.read_next_chunk()
            if chunk is None:
                break
            buffer += chunk
            *lines, buffer = buffer.split(b"\n")
            for line in lines:
                final = self._handle_line(line, errors) or final

        if buffer.strip():
            final = self._handle_line(buffer, errors) or final

        if final is None:
            detail = errors[-1] if errors else "no response received"
            raise AgentError(f"Agent request failed: {detail}")
        return final

    def _handle_line(self, line: bytes, errors: list[str]) -> BaseModel | None:
        if not line.strip():
            return None
        try:
            response = response_adapter.validate_json(line)
        except ValidationError:
            logger.warning("Unparseable agent output: %r", line[:200])
            return None

        if isinstance(response, LogMsgResponse):
            level = LOG_LEVELS.get(response.level, logging.INFO)
            logger.log(level, "[agent] %s", response.message)
            if level >= logging.ERROR:
                errors.append(response.message)
            if self._on_log:
                self._on_log(response.level, response.message)
            return None
        return response

    @staticmethod
    def _expect(response: BaseModel, expected: type[ResponseT]) -> ResponseT:
        if not isinstance(response, expected):
            raise AgentError(
                f"Unexpected agent response {type(response).__name__}, "
                f"expected {expected.__name__}"
            )
        return response

    async def get_mod_status(self) -> ModStatus:
        """Fetch the full mod status of the device."""
        response = await self._request(GetModStatusRequest())
        response = self._expect(response, ModStatusResponse)
        return ModStatus(installed_mods=response.installed_mods, app_info=response.app_info)

    async def set_mods_enabled(self, statuses: Mapping[str, bool]) -> list[Mod]:
        """Apply enable/disable changes in a single request."""
        response = await self._request(SetModsEnabledRequest(statuses=dict(statuses)))
        response = self._expect(response, ModsResponse)
        return response.installed_mods

    async def remove_mod(self, mod_id: str) -> list[Mod]:
        """Remove one mod from the device."""
        response = await self._request(RemoveModRequest(id=mod_id))
        response = self._expect(response, ModsResponse)
        return response.installed_mods

    async def quick_fix(self, wipe_existing_mods: bool) -> ModStatus:
        """Reinstall the core mods, optionally deleting all others first."""
        response = await self._request(QuickFixRequest(wipe_existing_mods=wipe_existing_mods))
        response = self._expect(response, ModStatusResponse)
        return ModStatus(installed_mods=response.installed_mods, app_info=response.app_info)

    async def fix_player_data(self) -> bool:
        """Repair player data file permissions.

        Returns:
            False if there was no player data file to fix.
        """
        response = await self._request(FixPlayerDataRequest())
        return self._expect(response, FixedPlayerDataResponse).existed

    async def import_file(self, path: Path) -> ImportResult:
        """Push a local file to the device and import it."""
        request = ImportRequest(from_path=f"{self._upload_dir}/{path.name}")
        response = await self._request(request, from_path=path)
        return self._to_import_result(response)

    async def import_url(self, url: str) -> ImportResult:
        """Have the agent download and import a URL."""
        response = await self._request(ImportUrlRequest(from_url=url))
        return self._to_import_result(response)

    def _to_import_result(self, response: BaseModel) -> ImportResult:
        response = self._expect(response, ImportResultResponse)
        result = response.result
        outcome: ImportOutcome
        if isinstance(result, ImportedMod):
            outcome = ModInstalled(
                installed_mods=result.installed_mods,
                imported_id=result.imported_id,
            )
        elif isinstance(result, ImportedFileCopy):
            outcome = FileCopied(destination_path=result.copied_to, owner_mod_id=result.mod_id)
        else:
            outcome = SongImported()
        return ImportResult(source_name=response.used_filename, outcome=outcome)
