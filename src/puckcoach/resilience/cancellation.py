"""Cooperative cancellation tokens."""

from __future__ import annotations

import threading

from puckcoach.errors import OperationCancelledError


class CancellationToken:
    """Flag checked at suspension points; never interrupts work in progress.

    A child token reports cancelled when either it or any ancestor is cancelled,
    so a caller can abandon one sub-step without cancelling the whole run.
    """

    def __init__(self, parent: "CancellationToken | None" = None) -> None:
        self._event = threading.Event()
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def child(self) -> "CancellationToken":
        return CancellationToken(parent=self)

    def raise_if_cancelled(self, where: str = "operation") -> None:
        if self.cancelled:
            raise OperationCancelledError(f"{where} cancelled")
