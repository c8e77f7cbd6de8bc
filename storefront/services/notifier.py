"""
==============================================================================
Error Notifier Module
==============================================================================

Fire-and-forget error reporting for catalog failures.

The catalog store calls ``report_error(message)`` once per transition into
the error state. Delivery (toast, chat message, log line) is up to the
implementation.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, List, Protocol


# Module logger
logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Receiver of user-facing error messages."""

    def report_error(self, message: str) -> None:
        """Report an error message."""


class LoggingNotifier:
    """Notifier that writes each report to the application log."""

    def __init__(self, prefix: str = "Shop error") -> None:
        self._prefix = prefix

    def report_error(self, message: str) -> None:
        logger.error(f"{self._prefix}: {message}")


class RecordingNotifier(LoggingNotifier):
    """
    Logging notifier that also keeps the latest messages in memory.

    Backs the /products/errors endpoint so clients can poll for the
    messages they would have shown as toasts. Only the newest ``limit``
    messages are kept.
    """

    def __init__(self, limit: int = 50, prefix: str = "Shop error") -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        super().__init__(prefix)
        self._lock = threading.Lock()
        self._messages: Deque[str] = deque(maxlen=limit)

    @property
    def messages(self) -> List[str]:
        """Reported messages, oldest first."""
        with self._lock:
            return list(self._messages)

    def report_error(self, message: str) -> None:
        super().report_error(message)
        with self._lock:
            self._messages.append(message)

    def clear(self) -> None:
        """Drop all recorded messages."""
        with self._lock:
            self._messages.clear()
