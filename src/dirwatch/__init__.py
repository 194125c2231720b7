"""
Directory Watcher Package

A poll-based watcher that snapshots a directory at a fixed interval and
reports what changed between snapshots.

Features:
- Change events: ADDED, DELETED, MODIFIED, SIZE_CHANGED, RENAMED
- Rename detection from metadata identity (creation time + size)
- Deterministic, single-writer differencing of tracked state
- Ordered listener fan-out with per-listener failure isolation
- Cancellable poll loop, blocking or in a background thread
"""

from .models import (
    ChangeKind,
    ChangeEvent,
    TrackedEntry,
    EntryInfo,
    Snapshot,
    compute_identity,
)

from .config import WatcherConfig

from .exceptions import (
    WatcherError,
    ConfigurationError,
    InvalidDirectoryError,
    WatcherAlreadyRunningError,
)

from .snapshot import SnapshotBuilder
from .differ import SnapshotDiffer, TrackedState
from .publisher import Listener, ConsoleListener, NotificationPublisher
from .process import DirectoryWatcher, WatcherState


__all__ = [
    # Models
    "ChangeKind",
    "ChangeEvent",
    "TrackedEntry",
    "EntryInfo",
    "Snapshot",
    "compute_identity",
    # Config
    "WatcherConfig",
    # Exceptions
    "WatcherError",
    "ConfigurationError",
    "InvalidDirectoryError",
    "WatcherAlreadyRunningError",
    # Components
    "SnapshotBuilder",
    "SnapshotDiffer",
    "TrackedState",
    "Listener",
    "ConsoleListener",
    "NotificationPublisher",
    # Main Process
    "DirectoryWatcher",
    "WatcherState",
]

__version__ = "0.1.0"
