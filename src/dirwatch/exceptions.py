"""Custom exceptions for the directory watcher package."""


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class ConfigurationError(WatcherError):
    """Watcher configuration is invalid."""
    pass


class InvalidDirectoryError(ConfigurationError):
    """Configured path is missing or is not a directory."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class WatcherAlreadyRunningError(WatcherError):
    """Watcher is already running."""
    pass
