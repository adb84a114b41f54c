"""Classification of import results into user-facing events.

This module provides:
- ResultClassifier: Turns an ImportResult into a Notification, enabling
  freshly installed mods when they target the current game version

Decision table for an installed mod:
    | Mod game_version        | Action                                  |
    |-------------------------|-----------------------------------------|
    | None                    | Enable, report success                  |
    | == targeted version     | Enable, report success                  |
    | != targeted version     | Leave disabled, report advisory         |
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from modbridge import notifications
from modbridge.sync.types import (
    FileCopied,
    InternalConsistencyError,
    ModInstalled,
    SongImported,
)

if TYPE_CHECKING:
    from modbridge.notifications import Notification
    from modbridge.sync.coordinator import ModSyncCoordinator
    from modbridge.sync.state import ModState
    from modbridge.sync.types import ImportResult

logger = logging.getLogger(__name__)


class ResultClassifier:
    """Maps import outcomes to events and decides auto-activation."""

    def __init__(
        self,
        coordinator: ModSyncCoordinator,
        state: ModState,
        game_version: str,
    ) -> None:
        """Initialize the classifier.

        Args:
            coordinator: Used to enable a freshly imported mod.
            state: Holder of the device-confirmed mod status.
            game_version: The game version currently installed on the device.
        """
        self._coordinator = coordinator
        self._state = state
        self._game_version = game_version

    @property
    def game_version(self) -> str:
        """Get the targeted game version."""
        return self._game_version

    async def classify(self, result: ImportResult) -> Notification:
        """Classify one import result.

        Raises:
            InternalConsistencyError: If an installed mod is missing from the
                mod list the device reported with it.
        """
        outcome = result.outcome
        if isinstance(outcome, FileCopied):
            logger.info(
                "Copied %s to %s due to request from %s",
                result.source_name,
                outcome.destination_path,
                outcome.owner_mod_id,
            )
            return notifications.file_copied(
                result.source_name, outcome.destination_path, outcome.owner_mod_id
            )
        if isinstance(outcome, SongImported):
            logger.info("Imported song %s", result.source_name)
            return notifications.song_imported(result.source_name)
        if isinstance(outcome, ModInstalled):
            return await self._on_mod_installed(outcome)
        raise TypeError(f"Unknown import outcome: {outcome!r}")

    async def _on_mod_installed(self, outcome: ModInstalled) -> Notification:
        self._state.replace_mods(outcome.installed_mods)

        imported = next(
            (mod for mod in outcome.installed_mods if mod.id == outcome.imported_id),
            None,
        )
        if imported is None:
            raise InternalConsistencyError(
                f"Imported mod {outcome.imported_id} is missing from the installed mods"
            )

        if imported.game_version is not None and imported.game_version != self._game_version:
            logger.info(
                "Not enabling %s: built for %s, game is %s",
                imported.id,
                imported.game_version,
                self._game_version,
            )
            return notifications.mod_not_enabled(imported.id, self._game_version)

        result = await self._coordinator.apply({imported.id: True})
        if not result.all_successful:
            logger.warning("Auto-enable of %s was not confirmed by the device", imported.id)
        return notifications.mod_installed(imported.id, imported.version)
