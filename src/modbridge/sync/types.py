"""Shared types and dataclasses for import and sync operations.

This module provides:
- InternalConsistencyError, LogCaptureStateError: Exception classes
- FileImport, UrlImport: Import job variants
- ModInstalled, FileCopied, SongImported: Import outcome variants
- ImportResult: Outcome of one import, tagged with its source name
- ChangeSet: Last-write-wins mapping of desired enabled states
- SyncResult: Device-confirmed result of applying a change set
- DrainReport, QueueStats: Import queue bookkeeping
- CancellationToken: Cooperative cancellation flag
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path

from modbridge.core.models import Mod
from modbridge.core.types import ModBridgeError


class InternalConsistencyError(ModBridgeError):
    """The device reported a state that contradicts the request just made."""


class LogCaptureStateError(ModBridgeError):
    """A log capture operation was requested in the wrong state."""


# =============================================================================
# Import Jobs
# =============================================================================


@dataclass(frozen=True)
class FileImport:
    """Import of a local file (dropped or uploaded)."""

    path: Path

    @property
    def display_name(self) -> str:
        """Name shown to the user."""
        return self.path.name


@dataclass(frozen=True)
class UrlImport:
    """Import of a remote URL (dropped link or repository download)."""

    url: str

    @property
    def display_name(self) -> str:
        """Name shown to the user."""
        return self.url


ImportJob = FileImport | UrlImport


# =============================================================================
# Import Outcomes
# =============================================================================


@dataclass(frozen=True)
class ModInstalled:
    """A mod was installed. ``installed_mods`` is the full post-import list."""

    installed_mods: list[Mod]
    imported_id: str


@dataclass(frozen=True)
class FileCopied:
    """The file was copied to a path requested by a mod."""

    destination_path: str
    owner_mod_id: str


@dataclass(frozen=True)
class SongImported:
    """The file was imported as a custom song."""


ImportOutcome = ModInstalled | FileCopied | SongImported


@dataclass(frozen=True)
class ImportResult:
    """Result of one import operation."""

    source_name: str
    outcome: ImportOutcome


# =============================================================================
# Change Sets
# =============================================================================


class ChangeSet(MutableMapping[str, bool]):
    """Desired enabled state per mod id.

    Setting an id that is already present overwrites the earlier intent;
    no history of toggles is kept.
    """

    def __init__(self, changes: dict[str, bool] | None = None) -> None:
        self._changes: dict[str, bool] = dict(changes or {})

    def __getitem__(self, mod_id: str) -> bool:
        return self._changes[mod_id]

    def __setitem__(self, mod_id: str, enabled: bool) -> None:
        self._changes[mod_id] = enabled

    def __delitem__(self, mod_id: str) -> None:
        del self._changes[mod_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def __repr__(self) -> str:
        return f"ChangeSet({self._changes!r})"

    def take(self) -> ChangeSet:
        """Return the current changes and clear this set atomically."""
        taken = ChangeSet(self._changes)
        self._changes = {}
        return taken

    def to_dict(self) -> dict[str, bool]:
        """Get a plain dict copy for serialization."""
        return dict(self._changes)


@dataclass
class SyncResult:
    """Device-confirmed result of applying a change set.

    Attributes:
        installed_mods: Full mod list reported by the device
        mismatched_ids: Ids whose reported state differs from the request
    """

    installed_mods: list[Mod]
    mismatched_ids: list[str] = field(default_factory=list)

    @property
    def all_successful(self) -> bool:
        """Check if every requested state was reached."""
        return not self.mismatched_ids


# =============================================================================
# Queue Types
# =============================================================================


@dataclass
class DrainReport:
    """Outcome of one drain of the import queue.

    Attributes:
        processed: Jobs that ran (successfully or not)
        failed: Jobs whose processing raised
        remaining: Jobs left in the backlog when the drain stopped
        disconnected: Whether the drain stopped because the device went away
    """

    processed: int = 0
    failed: int = 0
    remaining: int = 0
    disconnected: bool = False

    @property
    def truncated(self) -> bool:
        """Check if jobs were left behind."""
        return self.remaining > 0


@dataclass
class QueueStats:
    """Statistics for the import queue."""

    jobs_enqueued: int = 0
    jobs_processed: int = 0
    jobs_failed: int = 0
    drains: int = 0


class CancellationToken:
    """Cooperative cancellation flag that can also be awaited."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    async def wait(self) -> None:
        """Wait until cancellation is requested."""
        await self._event.wait()
