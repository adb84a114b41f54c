"""Import and sync coordination.

Architecture:
    ImportQueue → ModAgent → ResultClassifier → ModSyncCoordinator

Components:
- **ImportQueue**: Stack-ordered backlog with a single-flight drain loop
- **ResultClassifier**: Turns import outcomes into events, auto-enables mods
- **ModSyncCoordinator**: Applies change sets and reconciles the device answer
- **LogCaptureSession**: Cancellable, drain-to-completion log capture
- **ModState**: Holder of the device-confirmed mod status
"""

from modbridge.sync.classifier import ResultClassifier
from modbridge.sync.coordinator import (
    MISMATCH_MESSAGE,
    ModAgent,
    ModSyncCoordinator,
    find_mismatches,
)
from modbridge.sync.logcat import LogCaptureSession
from modbridge.sync.queue import ImportQueue
from modbridge.sync.state import ModState
from modbridge.sync.types import (
    CancellationToken,
    ChangeSet,
    DrainReport,
    FileCopied,
    FileImport,
    ImportJob,
    ImportOutcome,
    ImportResult,
    InternalConsistencyError,
    LogCaptureStateError,
    ModInstalled,
    QueueStats,
    SongImported,
    SyncResult,
    UrlImport,
)

__all__ = [
    # Types
    "CancellationToken",
    "ChangeSet",
    "DrainReport",
    "FileCopied",
    "FileImport",
    "ImportJob",
    "ImportOutcome",
    "ImportResult",
    "InternalConsistencyError",
    "LogCaptureStateError",
    "ModInstalled",
    "QueueStats",
    "SongImported",
    "SyncResult",
    "UrlImport",
    # Components
    "ImportQueue",
    "LogCaptureSession",
    "MISMATCH_MESSAGE",
    "ModAgent",
    "ModState",
    "ModSyncCoordinator",
    "ResultClassifier",
    "find_mismatches",
]
