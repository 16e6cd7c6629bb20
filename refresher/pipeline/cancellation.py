"""
Cooperative cancellation for pipeline runs.

A single CancellationToken threads through a whole run.  Steps call
``raise_if_cancelled()`` around their I/O; the runner checks ``cancelled``
after every step returns.
"""

from __future__ import annotations

import threading


class OperationCancelledError(Exception):
    """Raised at a suspension point once the token has been cancelled."""

    def __init__(self, message: str = "The operation was cancelled.") -> None:
        super().__init__(message)


class CancellationToken:
    """Thread-safe cancellation flag shared between a run and its caller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
