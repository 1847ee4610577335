"""Cooperative cancellation for pipeline stages."""

import threading
from typing import Optional


class OperationCancelled(RuntimeError):
    """Raised when a stage observes a cancelled token."""


class CancellationToken:
    """Thread-safe cancellation flag shared by every stage of one request."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str = "") -> None:
        """Raise OperationCancelled if cancel() was called.

        Args:
            stage: Stage name for the error message
        """
        if self._event.is_set():
            where = f" during {stage}" if stage else ""
            raise OperationCancelled(f"Operation cancelled{where}")

    def wait(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds, waking early on cancel.

        Returns:
            True if cancelled while waiting
        """
        return self._event.wait(timeout)


def check_cancelled(token: Optional[CancellationToken], stage: str = "") -> None:
    """raise_if_cancelled() that tolerates a missing token."""
    if token is not None:
        token.raise_if_cancelled(stage)
