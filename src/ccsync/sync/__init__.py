"""Versioned sync engine."""

from .engine import SyncOutcome, backup_global, resolve_project_destination, sync_files, sync_project
from .history import HistoryEntry, HistoryError, HistoryLog
from .lock import DestinationLock, SyncLockError
from .versioning import (
    VersionedFile,
    list_versions,
    next_version_name,
    prune_versions,
    write_versioned,
)

__all__ = [
    "SyncOutcome",
    "backup_global",
    "resolve_project_destination",
    "sync_files",
    "sync_project",
    "HistoryEntry",
    "HistoryError",
    "HistoryLog",
    "DestinationLock",
    "SyncLockError",
    "VersionedFile",
    "list_versions",
    "next_version_name",
    "prune_versions",
    "write_versioned",
]
