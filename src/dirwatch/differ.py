"""Snapshot differencing with rename detection and change classification."""

import logging
import time
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from .models import ChangeEvent, ChangeKind, Snapshot, TrackedEntry

logger = logging.getLogger(__name__)


class TrackedState:
    """
    The watcher's memory of a directory as of the last completed cycle.

    Maps entry name to its TrackedEntry; at most one entry per name.
    """

    def __init__(self, entries: Optional[Dict[str, TrackedEntry]] = None):
        self._entries: Dict[str, TrackedEntry] = dict(entries or {})

    def get(self, name: str) -> Optional[TrackedEntry]:
        return self._entries.get(name)

    def put(self, entry: TrackedEntry) -> None:
        self._entries[entry.name] = entry

    def pop(self, name: str) -> Optional[TrackedEntry]:
        return self._entries.pop(name, None)

    def names(self) -> List[str]:
        """Tracked names in sorted order."""
        return sorted(self._entries)

    def copy(self) -> "TrackedState":
        """Deep copy; entries of the copy can be mutated independently."""
        return TrackedState({
            name: TrackedEntry(
                name=entry.name,
                size=entry.size,
                last_modified=entry.last_modified,
                identity=entry.identity,
            )
            for name, entry in self._entries.items()
        })

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {name: self._entries[name].to_dict() for name in self.names()}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TrackedEntry]:
        for name in self.names():
            yield self._entries[name]

    def __eq__(self, other) -> bool:
        if not isinstance(other, TrackedState):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"TrackedState({self.names()!r})"


class SnapshotDiffer:
    """
    Compares a tracked state with a fresh snapshot and classifies changes.

    Phases run in a fixed order and later phases depend on earlier ones:

    1. Detect renames: a tracked name that is gone whose identity now
       belongs to a different name.
    2. Apply renames, moving the tracked entry to its new name.
    3. Classify every current name that is not a rename target as
       added, modified (mtime changed) or size changed.
    4. Report tracked names that are gone and whose identity is nowhere
       in the snapshot as deleted.

    A name therefore appears in at most one event per cycle, and a move
    is never reported as a delete plus an add.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize the differ.

        Args:
            clock: Source of event timestamps (default: time.time)
        """
        self.clock = clock or time.time

    def diff(
        self,
        state: TrackedState,
        snapshot: Snapshot,
    ) -> Tuple[List[ChangeEvent], TrackedState]:
        """
        Diff a tracked state against a snapshot.

        The input state is not modified.

        Args:
            state: Tracked state after the previous cycle
            snapshot: Snapshot taken in this cycle

        Returns:
            (events, new_state) - events in emission order and the
            tracked state after this cycle
        """
        now = self.clock()
        new_state = state.copy()
        events: List[ChangeEvent] = []

        renames = self._detect_renames(state, snapshot)
        rename_targets = self._apply_renames(renames, new_state, events, now)
        self._classify_current(snapshot, new_state, rename_targets, events, now)
        self._detect_deletions(state, snapshot, new_state, renames, events, now)

        if events:
            logger.debug(f"Cycle produced {len(events)} change(s)")
        return events, new_state

    def _detect_renames(self, state: TrackedState, snapshot: Snapshot) -> List[Tuple[str, str]]:
        """Collect (old_name, new_name) pairs without touching state."""
        current_names = snapshot.names
        renames: List[Tuple[str, str]] = []
        claimed: Set[str] = set()

        for old_name in state.names():
            if old_name in current_names:
                continue

            entry = state.get(old_name)
            new_name = snapshot.names_by_identity.get(entry.identity)
            if new_name is None or new_name == old_name:
                continue

            if new_name in claimed:
                logger.debug(f"Rename target {new_name!r} already claimed, ignoring {old_name!r}")
                continue

            claimed.add(new_name)
            renames.append((old_name, new_name))

        return renames

    def _apply_renames(
        self,
        renames: List[Tuple[str, str]],
        new_state: TrackedState,
        events: List[ChangeEvent],
        now: float,
    ) -> Set[str]:
        targets: Set[str] = set()

        for old_name, new_name in renames:
            entry = new_state.pop(old_name)
            replaced = new_state.pop(new_name)
            if replaced is not None:
                logger.debug(f"Rename {old_name!r} -> {new_name!r} replaces tracked entry {new_name!r}")

            entry.name = new_name
            new_state.put(entry)
            targets.add(new_name)
            events.append(ChangeEvent(ChangeKind.RENAMED, old_name, new_name, timestamp=now))

        return targets

    def _classify_current(
        self,
        snapshot: Snapshot,
        new_state: TrackedState,
        rename_targets: Set[str],
        events: List[ChangeEvent],
        now: float,
    ) -> None:
        for name, info in snapshot.entries.items():
            if name in rename_targets:
                continue

            tracked = new_state.get(name)
            if tracked is None:
                new_state.put(info.to_tracked())
                events.append(ChangeEvent(ChangeKind.ADDED, name, timestamp=now))
            # mtime first so a touch without a size change is still reported
            elif tracked.last_modified != info.last_modified:
                tracked.last_modified = info.last_modified
                tracked.identity = info.identity
                events.append(ChangeEvent(ChangeKind.MODIFIED, name, timestamp=now))
            elif tracked.size != info.size:
                tracked.size = info.size
                tracked.identity = info.identity
                events.append(ChangeEvent(ChangeKind.SIZE_CHANGED, name, timestamp=now))

    def _detect_deletions(
        self,
        state: TrackedState,
        snapshot: Snapshot,
        new_state: TrackedState,
        renames: List[Tuple[str, str]],
        events: List[ChangeEvent],
        now: float,
    ) -> None:
        current_names = snapshot.names
        renamed_from = {old_name for old_name, _ in renames}

        for old_name in state.names():
            if old_name in current_names or old_name in renamed_from:
                continue

            identity = state.get(old_name).identity
            if identity in snapshot.names_by_identity:
                # Only reachable when another entry won the same rename target
                logger.debug(
                    f"{old_name!r} lost rename target "
                    f"{snapshot.names_by_identity[identity]!r}, reporting as deleted"
                )

            new_state.pop(old_name)
            events.append(ChangeEvent(ChangeKind.DELETED, old_name, timestamp=now))
