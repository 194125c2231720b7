"""Poll loop that drives snapshot, diff and publish cycles."""

import dataclasses
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .config import WatcherConfig
from .differ import SnapshotDiffer, TrackedState
from .exceptions import InvalidDirectoryError, WatcherAlreadyRunningError
from .models import ChangeEvent
from .publisher import Listener, NotificationPublisher
from .snapshot import SnapshotBuilder

logger = logging.getLogger(__name__)


class WatcherState(Enum):
    """Lifecycle states of a DirectoryWatcher."""
    STOPPED = "stopped"
    WATCHING = "watching"


class DirectoryWatcher:
    """
    Polls one directory and publishes the changes found in each cycle.

    Each cycle lists the directory, diffs the listing against the tracked
    state and publishes the resulting events in order, then waits for the
    poll interval. Cycles never overlap. The tracked state belongs to the
    watcher; listeners only ever see formatted messages.
    """

    def __init__(
        self,
        directory: Optional[Union[str, Path]] = None,
        config: Optional[WatcherConfig] = None,
        listeners: Optional[Iterable[Listener]] = None,
    ):
        """
        Initialize the watcher.

        Args:
            directory: Directory to watch (overrides config.directory)
            config: Watcher configuration
            listeners: Listeners to subscribe immediately
        """
        # The directory is per watcher, so never write into a shared config
        if config is not None:
            self.config = dataclasses.replace(config, ignore_patterns=list(config.ignore_patterns))
        else:
            self.config = WatcherConfig()
        if directory is not None:
            self.config.directory = Path(directory)

        self._builder = SnapshotBuilder(self.config)
        self._differ = SnapshotDiffer()
        self._publisher = NotificationPublisher()
        self._state = TrackedState()
        self._cycles = 0

        self._watcher_state = WatcherState.STOPPED
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        for listener in listeners or []:
            self.subscribe(listener)

    @property
    def directory(self) -> Optional[Path]:
        return self.config.directory

    def set_directory(self, path: Union[str, Path]) -> None:
        """
        Set the directory to watch and forget any tracked state.

        Raises:
            WatcherAlreadyRunningError: If the watcher is running
        """
        with self._lock:
            if self._watcher_state == WatcherState.WATCHING:
                raise WatcherAlreadyRunningError("Cannot change directory while watching")
            self.config.directory = Path(path)
            self._state = TrackedState()
            self._cycles = 0

    def subscribe(self, listener: Listener) -> bool:
        """Register a listener for change notifications."""
        return self._publisher.subscribe(listener)

    def unsubscribe(self, listener: Listener) -> bool:
        """Remove a previously registered listener."""
        return self._publisher.unsubscribe(listener)

    @property
    def listeners(self) -> List[Listener]:
        return self._publisher.listeners()

    def validate_directory(self) -> Path:
        """
        Check that the configured directory exists and is a directory.

        Returns:
            The resolved directory path

        Raises:
            InvalidDirectoryError: If no directory is set or it is not a directory
        """
        directory = self.config.directory
        if directory is None:
            raise InvalidDirectoryError("No directory configured")
        if not directory.exists():
            raise InvalidDirectoryError(f"Directory does not exist: {directory}", directory)
        if not directory.is_dir():
            raise InvalidDirectoryError(f"Not a directory: {directory}", directory)
        return directory.resolve()

    def run_cycle(self) -> List[ChangeEvent]:
        """
        Run one snapshot, diff and publish pass.

        Returns:
            Events published in this cycle, in order
        """
        directory = self.config.directory
        if directory is None:
            raise InvalidDirectoryError("No directory configured")

        snapshot = self._builder.build(directory)
        events, new_state = self._differ.diff(self._state, snapshot)

        if self._cycles == 0 and not self.config.report_existing:
            logger.debug(f"Baseline of {len(new_state)} entries recorded")
            events = []

        self._state = new_state
        self._cycles += 1

        for event in events:
            self._publisher.publish(event)
        return events

    def _enter_watching(self) -> Path:
        with self._lock:
            if self._watcher_state == WatcherState.WATCHING:
                raise WatcherAlreadyRunningError("Watcher is already running")

            try:
                directory = self.validate_directory()
            except InvalidDirectoryError as e:
                logger.error(f"Invalid directory: {e}")
                raise

            self._watcher_state = WatcherState.WATCHING

        logger.info(f"Watching directory: {directory}")
        return directory

    def _run_loop(self) -> None:
        interval = self.config.poll_interval
        try:
            while not self._stop_event.is_set():
                try:
                    self.run_cycle()
                except Exception:
                    logger.exception("Poll cycle failed")

                if self._stop_event.wait(timeout=interval):
                    break
        finally:
            with self._lock:
                self._watcher_state = WatcherState.STOPPED
                self._stop_event.clear()
            logger.info(f"Stopped watching {self.config.directory}")

    def start(self) -> None:
        """
        Start watching (blocking).

        Runs cycles until stop() is called or the process is interrupted.

        Raises:
            InvalidDirectoryError: If the directory is missing or not a directory
            WatcherAlreadyRunningError: If already running
        """
        self._enter_watching()
        try:
            self._run_loop()
        except KeyboardInterrupt:
            logger.info("Interrupted")

    def start_async(self) -> None:
        """
        Start watching in a background thread.

        Raises:
            InvalidDirectoryError: If the directory is missing or not a directory
            WatcherAlreadyRunningError: If already running
        """
        self._enter_watching()
        self._thread = threading.Thread(target=self._run_loop, name="DirectoryWatcher")
        self._thread.daemon = True
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Request the loop to stop.

        Takes effect before the next cycle starts. A request made while the
        watcher is not running is kept, so the next start returns at once.
        When the loop runs in a background thread, waits for it to finish.

        Args:
            timeout: Maximum seconds to wait for the background thread
        """
        self._stop_event.set()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if not thread.is_alive():
                self._thread = None

    @property
    def state(self) -> TrackedState:
        """Copy of the tracked state after the last completed cycle."""
        return self._state.copy()

    @property
    def watcher_state(self) -> WatcherState:
        return self._watcher_state

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._watcher_state == WatcherState.WATCHING

    @property
    def cycles(self) -> int:
        """Number of completed cycles since the directory was set."""
        return self._cycles

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
