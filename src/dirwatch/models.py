"""Data models for the directory watcher package."""

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Kinds of change detected between two poll cycles."""
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    SIZE_CHANGED = "size_changed"
    RENAMED = "renamed"


_VERBS = {
    ChangeKind.ADDED: "File added",
    ChangeKind.DELETED: "File deleted",
    ChangeKind.MODIFIED: "File modification detected",
    ChangeKind.SIZE_CHANGED: "File size changed",
    ChangeKind.RENAMED: "File renamed",
}


@dataclass
class TrackedEntry:
    """
    What the watcher believes about one directory entry.

    Attributes:
        name: Entry name inside the watched directory
        size: Size in bytes
        last_modified: Modification time in nanoseconds
        identity: Correlation key used to detect renames
    """
    name: str
    size: int
    last_modified: int
    identity: str

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "size": self.size,
            "last_modified": self.last_modified,
            "identity": self.identity,
        }


@dataclass(frozen=True)
class EntryInfo:
    """Metadata for one entry as seen in the current listing."""
    name: str
    size: int
    last_modified: int
    identity: str

    def to_tracked(self) -> TrackedEntry:
        return TrackedEntry(
            name=self.name,
            size=self.size,
            last_modified=self.last_modified,
            identity=self.identity,
        )


@dataclass(frozen=True)
class ChangeEvent:
    """
    A single classified change in the watched directory.

    Attributes:
        kind: The kind of change
        name: Affected entry name (the old name for RENAMED)
        new_name: For RENAMED events, the new name
        timestamp: Unix timestamp when the change was detected
    """
    kind: ChangeKind
    name: str
    new_name: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if self.kind == ChangeKind.RENAMED and not self.new_name:
            raise ValueError("new_name is required for RENAMED events")
        if self.kind != ChangeKind.RENAMED and self.new_name is not None:
            raise ValueError(f"new_name is only valid for RENAMED events: {self.kind.value}")

    @property
    def names(self) -> Tuple[str, ...]:
        """All entry names touched by this event."""
        if self.new_name is not None:
            return (self.name, self.new_name)
        return (self.name,)

    def format_message(self) -> str:
        """Render the human readable notification line."""
        clock = datetime.fromtimestamp(self.timestamp).strftime("%I:%M:%S %p")
        verb = _VERBS[self.kind]
        if self.kind == ChangeKind.RENAMED:
            return f"[{clock}] {verb}: {self.name} -> {self.new_name}"
        return f"[{clock}] {verb}: {self.name}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "new_name": self.new_name,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChangeEvent":
        """Create from dictionary."""
        return cls(
            kind=ChangeKind(data["kind"]),
            name=data["name"],
            new_name=data.get("new_name"),
            timestamp=data.get("timestamp", time.time()),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    The entries of a directory as listed in one poll cycle.

    ``names_by_identity`` is built in ascending name order, so when two
    entries share an identity the lexicographically greatest name owns it.
    """
    entries: Dict[str, EntryInfo] = field(default_factory=dict)
    names_by_identity: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_entries(cls, entries: Iterable[EntryInfo]) -> "Snapshot":
        by_name: Dict[str, EntryInfo] = {}
        for entry in sorted(entries, key=lambda e: e.name):
            by_name[entry.name] = entry

        by_identity: Dict[str, str] = {}
        for name, entry in by_name.items():
            previous = by_identity.get(entry.identity)
            if previous is not None:
                logger.debug(f"Identity collision between {previous!r} and {name!r}, keeping {name!r}")
            by_identity[entry.identity] = name

        return cls(entries=by_name, names_by_identity=by_identity)

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()

    @property
    def names(self) -> FrozenSet[str]:
        return frozenset(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: str) -> bool:
        return name in self.entries


def compute_identity(st: os.stat_result) -> str:
    """
    Compute the rename-correlation identity of an entry from its metadata.

    Uses creation time and size where the platform records a creation
    time, otherwise size and modification time. Both survive a rename
    within the same directory.

    Args:
        st: Result of ``os.stat`` for the entry

    Returns:
        Opaque identity string
    """
    # Zero means the filesystem does not record it
    birthtime = getattr(st, "st_birthtime", None)
    if birthtime:
        birthtime_ns = getattr(st, "st_birthtime_ns", None) or int(birthtime * 1_000_000_000)
        return f"{birthtime_ns}_{st.st_size}"

    return f"{st.st_size}_{st.st_mtime_ns}"

