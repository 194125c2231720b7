"""Configuration for the directory watcher package."""

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from .exceptions import ConfigurationError

ENV_DIRECTORY = "DIRWATCH_DIRECTORY"
ENV_POLL_INTERVAL_MS = "DIRWATCH_POLL_INTERVAL_MS"
ENV_IGNORE = "DIRWATCH_IGNORE"
ENV_REPORT_EXISTING = "DIRWATCH_REPORT_EXISTING"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class WatcherConfig:
    """
    Configuration options for the directory watcher.

    Attributes:
        directory: Directory to watch (validated when watching starts)
        poll_interval_ms: Milliseconds to wait between poll cycles
        ignore_patterns: Glob patterns for entry names to ignore
        include_directories: Whether subdirectory entries are tracked
        report_existing: Whether entries present at start are reported as added
    """
    directory: Optional[Path] = None
    poll_interval_ms: int = 3000
    ignore_patterns: List[str] = field(default_factory=list)
    include_directories: bool = True
    report_existing: bool = True

    def __post_init__(self):
        if isinstance(self.directory, str):
            self.directory = Path(self.directory)
        if self.poll_interval_ms <= 0:
            raise ConfigurationError(
                f"poll_interval_ms must be positive: {self.poll_interval_ms}"
            )

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

    def should_ignore(self, name: str) -> bool:
        """
        Check if an entry name should be ignored based on ignore patterns.

        Args:
            name: Entry name (not a full path)

        Returns:
            True if the entry should be ignored
        """
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignore_patterns)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WatcherConfig":
        """
        Build a configuration from ``DIRWATCH_*`` environment variables.

        Unset variables keep their defaults.

        Raises:
            ConfigurationError: If a variable has an invalid value
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        directory = env.get(ENV_DIRECTORY)
        if directory:
            kwargs["directory"] = Path(directory)

        interval = env.get(ENV_POLL_INTERVAL_MS)
        if interval:
            try:
                kwargs["poll_interval_ms"] = int(interval)
            except ValueError:
                raise ConfigurationError(
                    f"{ENV_POLL_INTERVAL_MS} must be an integer: {interval!r}"
                ) from None

        ignore = env.get(ENV_IGNORE)
        if ignore:
            kwargs["ignore_patterns"] = [p.strip() for p in ignore.split(",") if p.strip()]

        report_existing = env.get(ENV_REPORT_EXISTING)
        if report_existing:
            kwargs["report_existing"] = report_existing.strip().lower() in _TRUE_VALUES

        return cls(**kwargs)
