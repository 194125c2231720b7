"""Fan-out of change notifications to registered listeners."""

import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

from .models import ChangeEvent

logger = logging.getLogger(__name__)


class Listener(ABC):
    """Receives formatted change notifications."""

    @abstractmethod
    def notify(self, message: str) -> None:
        """
        Handle one notification.

        Args:
            message: Formatted notification line
        """
        pass


class ConsoleListener(Listener):
    """Prints each notification prefixed with the listener's name."""

    def __init__(self, name: str, stream: Optional[TextIO] = None):
        self.name = name
        self.stream = stream

    def notify(self, message: str) -> None:
        print(f"[{self.name}] {message}", file=self.stream or sys.stdout, flush=True)

    def __repr__(self) -> str:
        return f"ConsoleListener({self.name!r})"


class NotificationPublisher:
    """
    Ordered registry of listeners with isolated-failure delivery.

    Listeners are called synchronously in registration order. An exception
    raised by one listener is logged and does not stop delivery to the
    listeners after it.
    """

    def __init__(self):
        """Initialize an empty publisher."""
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> bool:
        """
        Register a listener.

        Args:
            listener: Object with a ``notify(message)`` method

        Returns:
            True if registered, False if it was already registered
        """
        with self._lock:
            if any(existing is listener for existing in self._listeners):
                return False
            self._listeners.append(listener)
            return True

    def unsubscribe(self, listener: Listener) -> bool:
        """
        Remove a listener.

        Returns:
            True if the listener was registered
        """
        with self._lock:
            for i, existing in enumerate(self._listeners):
                if existing is listener:
                    del self._listeners[i]
                    return True
            return False

    def listeners(self) -> List[Listener]:
        """Currently registered listeners, in registration order."""
        with self._lock:
            return list(self._listeners)

    def publish(self, event: ChangeEvent) -> int:
        """
        Deliver one event to every registered listener.

        Args:
            event: The change event to announce

        Returns:
            Number of listeners that accepted the notification
        """
        message = event.format_message()
        delivered = 0

        for listener in self.listeners():
            try:
                listener.notify(message)
                delivered += 1
            except Exception:
                logger.exception(f"Listener {listener!r} failed to handle: {message}")

        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
