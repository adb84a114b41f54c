"""Mod sync coordinator for applying enable/disable changes.

This module provides:
- ModAgent: Protocol for the device-side operations the core relies on
- ModSyncCoordinator: Applies a change set and reconciles the reported state

The coordinator performs a single best-effort batch request:
1. Sends the whole change set to the device in one request
2. Replaces the held mod list with the device's answer
3. Compares every requested id against the reported ``is_enabled``

Reconciliation Matrix:
    | Requested | Reported | Outcome                              |
    |-----------|----------|--------------------------------------|
    | True      | True     | OK                                   |
    | False     | False    | OK                                   |
    | True      | False    | Mismatch (kept, reported in bulk)    |
    | False     | True     | Mismatch (kept, reported in bulk)    |
    | any       | absent   | Not compared                         |

A mismatch is not rolled back or retried. It usually means two changes
conflicted, e.g. enabling a mod while disabling one of its dependencies.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from modbridge.sync.types import SyncResult

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from modbridge.core.models import Mod, ModStatus
    from modbridge.sync.state import ModState
    from modbridge.sync.types import ImportResult

logger = logging.getLogger(__name__)

MISMATCH_MESSAGE = (
    "Not all the selected mods were successfully installed/uninstalled.\n"
    "This happens when two changes are made that conflict, e.g. trying to "
    "install a mod but uninstall one of its dependencies."
)


class ModAgent(Protocol):
    """Protocol for device-side mod operations.

    Implemented by AgentClient; tests substitute fakes.
    """

    async def import_file(self, path: Path) -> ImportResult:
        """Install one local file."""
        ...

    async def import_url(self, url: str) -> ImportResult:
        """Download and install one URL."""
        ...

    async def set_mods_enabled(self, statuses: Mapping[str, bool]) -> list[Mod]:
        """Apply enable/disable states and return the resulting mods."""
        ...

    async def remove_mod(self, mod_id: str) -> list[Mod]:
        """Remove one mod and return the resulting mods."""
        ...

    async def quick_fix(self, wipe_existing_mods: bool) -> ModStatus:
        """Reinstall the core mods."""
        ...

    async def fix_player_data(self) -> bool:
        """Repair player data permissions; False if there was nothing to fix."""
        ...

    async def get_mod_status(self) -> ModStatus:
        """Fetch the full mod status."""
        ...


class ModSyncCoordinator:
    """Applies change sets to the device and reconciles the result.

    Usage:
        coordinator = ModSyncCoordinator(agent, state)
        result = await coordinator.apply(ChangeSet({"a": True, "b": False}))
        if not result.all_successful:
            warn(MISMATCH_MESSAGE)
    """

    def __init__(self, agent: ModAgent, state: ModState) -> None:
        """Initialize the coordinator.

        Args:
            agent: Device-side operations.
            state: Holder of the device-confirmed mod status.
        """
        self._agent = agent
        self._state = state

    async def apply(self, changes: Mapping[str, bool]) -> SyncResult:
        """Send a change set in one request and reconcile the answer.

        Args:
            changes: Desired enabled state per mod id.

        Returns:
            The reported mod list and the ids that did not reach their
            requested state.
        """
        requested = dict(changes)
        logger.info("Setting mod statuses: %s", requested)

        installed_mods = await self._agent.set_mods_enabled(requested)
        self._state.replace_mods(installed_mods)

        mismatched = find_mismatches(requested, installed_mods)
        if mismatched:
            logger.warning("Requested mod states not reached for: %s", ", ".join(mismatched))
        return SyncResult(installed_mods=installed_mods, mismatched_ids=mismatched)


def find_mismatches(changes: Mapping[str, bool], installed_mods: list[Mod]) -> list[str]:
    """Get the ids whose reported enabled state differs from the request."""
    reported = {mod.id: mod.is_enabled for mod in installed_mods}
    return sorted(
        mod_id
        for mod_id, enabled in changes.items()
        if mod_id in reported and reported[mod_id] != enabled
    )

