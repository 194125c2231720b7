"""Directory listing for one poll cycle, built on watchdog's snapshots."""

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional

from watchdog.utils.dirsnapshot import DirectorySnapshot

from .config import WatcherConfig
from .models import EntryInfo, Snapshot, compute_identity

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """
    Lists the immediate children of a directory and records their metadata.

    Listing is never recursive. Failures never propagate: an unreadable
    directory yields an empty snapshot and entries that disappear between
    listing and stat are skipped.
    """

    def __init__(self, config: Optional[WatcherConfig] = None):
        """
        Initialize the snapshot builder.

        Args:
            config: Watcher configuration (ignore patterns, directory policy)
        """
        self.config = config or WatcherConfig()

    def build(self, directory: Path) -> Snapshot:
        """
        Build a snapshot of ``directory``.

        Args:
            directory: Directory to list

        Returns:
            Snapshot of the current entries (empty if the listing fails)
        """
        root = os.fspath(directory)
        try:
            dir_snapshot = DirectorySnapshot(root, recursive=False)
        except OSError as e:
            logger.warning(f"Cannot list {directory}: {e}")
            return Snapshot.empty()

        entries: List[EntryInfo] = []
        for path in dir_snapshot.paths:
            if path == root:
                continue

            name = os.path.basename(path)
            if self.config.should_ignore(name):
                continue

            st = dir_snapshot.stat_info(path)
            if stat.S_ISDIR(st.st_mode) and not self.config.include_directories:
                continue

            entries.append(
                EntryInfo(
                    name=name,
                    size=st.st_size,
                    last_modified=st.st_mtime_ns,
                    identity=compute_identity(st),
                )
            )

        snapshot = Snapshot.from_entries(entries)
        logger.debug(f"Listed {len(snapshot)} entries in {directory}")
        return snapshot
