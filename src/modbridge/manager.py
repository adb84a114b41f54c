"""Session-scoped facade exposed to the UI layer.

This module provides:
- ModManager: Wires the import queue, result classifier, sync coordinator
  and log capture around one device channel

Architecture:
    UI ─enqueue_imports─► ImportQueue ─► ModAgent.import_* ─► ResultClassifier
                                                                   │
    UI ─apply_change_set──────────────► ModSyncCoordinator ◄───────┘
    UI ─start/cancel_log_capture──────► LogCaptureSession

Every user-facing outcome is delivered to the event sink as a Notification.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from modbridge import notifications
from modbridge.core.config import DEFAULT_GAME_PACKAGE
from modbridge.core.types import DeviceError, LogCaptureState
from modbridge.sync.classifier import ResultClassifier
from modbridge.sync.coordinator import MISMATCH_MESSAGE, ModSyncCoordinator
from modbridge.sync.logcat import LogCaptureSession
from modbridge.sync.queue import ImportQueue
from modbridge.sync.state import ModState
from modbridge.sync.types import ChangeSet, FileImport, ImportJob, UrlImport

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from modbridge.core.models import Mod, ModStatus
    from modbridge.device.session import DeviceChannel
    from modbridge.notifications import Notification
    from modbridge.sync.coordinator import ModAgent
    from modbridge.sync.types import SyncResult

logger = logging.getLogger(__name__)


class ModManager:
    """Coordinates every device-affecting user action for one session.

    Usage:
        manager = ModManager(channel, agent, game_version="1.29.0", status=status)
        manager.set_on_event(print)

        await manager.enqueue_imports([FileImport(Path("mod.qmod"))])
        manager.toggle("some-mod", False)
        await manager.apply_change_set()
    """

    def __init__(
        self,
        channel: DeviceChannel,
        agent: ModAgent,
        game_version: str,
        status: ModStatus | None = None,
        game_package: str = DEFAULT_GAME_PACKAGE,
    ) -> None:
        """Initialize the manager.

        Args:
            channel: Serialized channel to the device.
            agent: Device-side mod operations.
            game_version: Game version installed on the device.
            status: Initial device-confirmed mod status.
            game_package: Android package name of the game.
        """
        self._channel = channel
        self._agent = agent
        self._game_package = game_package

        self._state = ModState(status)
        self._changes = ChangeSet()
        self._coordinator = ModSyncCoordinator(agent, self._state)
        self._classifier = ResultClassifier(self._coordinator, self._state, game_version)
        self._queue = ImportQueue(channel.session.disconnected, self._process_job)
        self._queue.set_on_job_failed(self._on_job_failed)
        self._log_capture = LogCaptureSession(channel)

        self._on_event: Callable[[Notification], None] | None = None

    @property
    def state(self) -> ModState:
        """Get the holder of the device-confirmed mod status."""
        return self._state

    @property
    def mods(self) -> list[Mod]:
        """Get the installed mods, sorted by id."""
        return self._state.mods

    @property
    def queue(self) -> ImportQueue:
        """Get the import queue."""
        return self._queue

    @property
    def log_capture(self) -> LogCaptureSession:
        """Get the log capture session."""
        return self._log_capture

    @property
    def has_changes(self) -> bool:
        """Check if there are changes waiting to be synced."""
        return len(self._changes) > 0

    def set_on_event(self, callback: Callable[[Notification], None]) -> None:
        """Set the sink for user-facing events."""
        self._on_event = callback

    def set_on_working_changed(self, callback: Callable[[bool], None]) -> None:
        """Set callback for import queue activity."""
        self._queue.set_on_working_changed(callback)

    def _emit(self, event: Notification) -> None:
        logger.debug("Event: %s - %s", event.title, event.message)
        if self._on_event:
            self._on_event(event)

    # =========================================================================
    # Imports
    # =========================================================================

    async def enqueue_imports(self, jobs: Iterable[ImportJob]) -> bool:
        """Queue imports; returns True if this call drove the queue."""
        return await self._queue.enqueue(jobs)

    async def import_files(self, paths: Iterable[Path]) -> bool:
        """Queue dropped or uploaded files."""
        return await self.enqueue_imports(FileImport(path) for path in paths)

    async def import_url(self, url: str) -> bool:
        """Queue a dropped link or a repository download."""
        return await self.enqueue_imports([UrlImport(url)])

    async def _process_job(self, job: ImportJob) -> None:
        if isinstance(job, UrlImport):
            if job.url.startswith("file:///"):
                logger.warning("Rejected dropped file URL %s", job.url)
                self._emit(notifications.unsupported_drop_source())
                return
            result = await self._agent.import_url(job.url)
        else:
            result = await self._agent.import_file(job.path)
        self._emit(await self._classifier.classify(result))

    def _on_job_failed(self, job: ImportJob, error: Exception) -> None:
        self._emit(notifications.import_failed(error))

    # =========================================================================
    # Enable / disable
    # =========================================================================

    def toggle(self, mod_id: str, enabled: bool) -> None:
        """Record the desired state of a mod; a later toggle overwrites it."""
        self._changes[mod_id] = enabled

    async def apply_change_set(self) -> SyncResult | None:
        """Sync the pending changes to the device.

        The pending changes are cleared as soon as the sync starts.

        Returns:
            The sync result, or None if there was nothing to sync or the
            request failed.
        """
        changes = self._changes.take()
        if not changes:
            return None

        logger.info("Installing mods, statuses requested: %s", changes.to_dict())
        try:
            result = await self._coordinator.apply(changes)
        except Exception as e:
            logger.exception("Failed to sync mods")
            self._emit(notifications.sync_failed(str(e)))
            return None

        if not result.all_successful:
            self._emit(notifications.sync_failed(MISMATCH_MESSAGE))
        return result

    async def remove_mod(self, mod_id: str) -> bool:
        """Remove one mod from the device."""
        try:
            self._state.replace_mods(await self._agent.remove_mod(mod_id))
        except Exception as e:
            logger.exception("Failed to remove %s", mod_id)
            self._emit(notifications.sync_failed(str(e)))
            return False
        return True

    # =========================================================================
    # Tools
    # =========================================================================

    async def refresh_status(self) -> ModStatus:
        """Fetch the full mod status from the device."""
        status = await self._agent.get_mod_status()
        self._state.replace(status)
        return self._state.status

    async def kill_game(self) -> bool:
        """Force-stop the game process."""
        try:
            await self._channel.execute(f"am force-stop {self._game_package}")
        except Exception as e:
            logger.exception("Failed to kill %s", self._game_package)
            self._emit(notifications.operation_failed(f"Failed to kill game process {e}"))
            return False
        self._emit(notifications.operation_succeeded("Successfully killed the game"))
        return True

    async def reinstall_core_mods(self) -> bool:
        """Delete every mod, then install only the core mods."""
        try:
            self._state.replace(await self._agent.quick_fix(wipe_existing_mods=True))
        except Exception as e:
            logger.exception("Failed to reinstall core mods")
            self._emit(notifications.operation_failed(f"Failed to uninstall all mods {e}"))
            return False
        self._emit(notifications.operation_succeeded("All non-core mods removed!"))
        return True

    async def uninstall_game(self) -> bool:
        """Uninstall the game, removing every mod with it."""
        try:
            output = await self._channel.execute(f"pm uninstall {self._game_package}")
            if "Success" not in output:
                raise DeviceError(output.strip() or "no output from package manager")
        except Exception as e:
            logger.exception("Failed to uninstall %s", self._game_package)
            self._emit(notifications.operation_failed(f"Failed to uninstall the game {e}"))
            return False
        self._emit(notifications.operation_succeeded("Successfully uninstalled the game"))
        return True

    async def fix_player_data(self) -> bool:
        """Repair the permissions of the player data file.

        Returns:
            True if a player data file was found and fixed.
        """
        try:
            existed = await self._agent.fix_player_data()
        except Exception as e:
            logger.exception("Failed to fix player data")
            self._emit(notifications.operation_failed(f"Failed to fix player data {e}"))
            return False
        if not existed:
            self._emit(notifications.operation_failed("No player data file found to fix"))
            return False
        self._emit(notifications.operation_succeeded("Successfully fixed player data issues"))
        return True

    # =========================================================================
    # Log capture
    # =========================================================================

    async def start_log_capture(self) -> None:
        """Begin recording the device log."""
        await self._log_capture.start()

    async def cancel_log_capture(self) -> bytes | None:
        """Stop recording and return the finalized log.

        Returns:
            The captured log, or None if reading the log failed.
        """
        if self._log_capture.state == LogCaptureState.CAPTURING:
            self._log_capture.cancel()
        return await self._log_capture.wait()
