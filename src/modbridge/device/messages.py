"""Pydantic schemas for mod agent requests and responses.

The agent reads one JSON request from stdin and answers with one JSON
object per line: any number of ``LogMsg`` objects followed by exactly one
final response.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from modbridge.core.models import AppInfo, Mod

# === Requests ===


class GetModStatusRequest(BaseModel):
    """Request the full mod status of the device."""

    type: Literal["GetModStatus"] = "GetModStatus"
    override_core_mod_url: str | None = None


class SetModsEnabledRequest(BaseModel):
    """Request a batch of enable/disable changes."""

    type: Literal["SetModsEnabled"] = "SetModsEnabled"
    statuses: dict[str, bool]


class RemoveModRequest(BaseModel):
    """Request removal of one mod."""

    type: Literal["RemoveMod"] = "RemoveMod"
    id: str


class ImportRequest(BaseModel):
    """Request import of a file already pushed to the device."""

    type: Literal["Import"] = "Import"
    from_path: str


class ImportUrlRequest(BaseModel):
    """Request the agent to download and import a URL."""

    type: Literal["ImportUrl"] = "ImportUrl"
    from_url: str


class QuickFixRequest(BaseModel):
    """Request reinstallation of the core mods."""

    type: Literal["QuickFix"] = "QuickFix"
    override_core_mod_url: str | None = None
    wipe_existing_mods: bool = False


class FixPlayerDataRequest(BaseModel):
    """Request repair of the player data file permissions."""

    type: Literal["FixPlayerData"] = "FixPlayerData"


AgentRequest = (
    GetModStatusRequest
    | SetModsEnabledRequest
    | RemoveModRequest
    | ImportRequest
    | ImportUrlRequest
    | QuickFixRequest
    | FixPlayerDataRequest
)

# === Import results ===


class ImportedMod(BaseModel):
    """A mod was installed by the import."""

    type: Literal["ImportedMod"] = "ImportedMod"
    installed_mods: list[Mod]
    imported_id: str


class ImportedFileCopy(BaseModel):
    """The file was copied to a location requested by a mod."""

    type: Literal["ImportedFileCopy"] = "ImportedFileCopy"
    copied_to: str
    mod_id: str


class ImportedSong(BaseModel):
    """The file was imported as a custom song."""

    type: Literal["ImportedSong"] = "ImportedSong"


ImportResultType = Annotated[
    ImportedMod | ImportedFileCopy | ImportedSong,
    Field(discriminator="type"),
]

# === Responses ===


class LogMsgResponse(BaseModel):
    """A progress log line emitted while a request runs."""

    type: Literal["LogMsg"] = "LogMsg"
    level: str = "Info"
    message: str


class ModsResponse(BaseModel):
    """The installed mods after a mutating request."""

    type: Literal["Mods"] = "Mods"
    installed_mods: list[Mod]


class ModStatusResponse(BaseModel):
    """The full mod status of the device."""

    type: Literal["ModStatus"] = "ModStatus"
    app_info: AppInfo | None = None
    installed_mods: list[Mod] = Field(default_factory=list)


class ImportResultResponse(BaseModel):
    """The outcome of an import request."""

    type: Literal["ImportResult"] = "ImportResult"
    used_filename: str
    result: ImportResultType


class FixedPlayerDataResponse(BaseModel):
    """Whether a player data file existed to be fixed."""

    type: Literal["FixedPlayerData"] = "FixedPlayerData"
    existed: bool


AgentResponse = Annotated[
    LogMsgResponse
    | ModsResponse
    | ModStatusResponse
    | ImportResultResponse
    | FixedPlayerDataResponse,
    Field(discriminator="type"),
]

response_adapter: TypeAdapter[
    LogMsgResponse
    | ModsResponse
    | ModStatusResponse
    | ImportResultResponse
    | FixedPlayerDataResponse
] = TypeAdapter(AgentResponse)
