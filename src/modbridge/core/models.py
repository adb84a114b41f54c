"""Pydantic models for the device-confirmed mod state.

These mirror the objects reported by the mod agent. A ModStatus is always
replaced wholesale after a mutating call, never patched in place.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Mod(BaseModel):
    """A mod installed on the device. Identity is ``id``."""

    id: str
    version: str
    game_version: str | None = None
    is_enabled: bool = False
    name: str | None = None
    description: str | None = None
    is_core: bool = False


class AppInfo(BaseModel):
    """Information about the installed game."""

    version: str
    manifest_xml: str | None = None


class ModStatus(BaseModel):
    """Authoritative, device-confirmed mod state."""

    installed_mods: list[Mod] = Field(default_factory=list)
    app_info: AppInfo | None = None

    def with_mods(self, mods: list[Mod]) -> ModStatus:
        """Return a new status with the mod list replaced."""
        return ModStatus(installed_mods=sort_mods(mods), app_info=self.app_info)

    def find(self, mod_id: str) -> Mod | None:
        """Look up an installed mod by id."""
        for mod in self.installed_mods:
            if mod.id == mod_id:
                return mod
        return None


def sort_mods(mods: list[Mod]) -> list[Mod]:
    """Sort mods by id for stable display."""
    return sorted(mods, key=lambda m: m.id)


def trim_game_version(game_version: str) -> str:
    """Strip the build metadata suffix from a game version.

    Game versions are reported as ``1.29.0_4124311467``; only the part
    before the underscore is meaningful to users.
    """
    return game_version.split("_", 1)[0]
