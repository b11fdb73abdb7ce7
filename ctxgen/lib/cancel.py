"""Run-level cancellation signal shared by every document in a compile run."""

from __future__ import annotations

import threading

from ctxgen.errors import CompilationCancelled


class CancelToken:
    """Thread-safe flag checked between files, URLs and git calls."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        """Raise :class:`CompilationCancelled` if the run has been cancelled."""
        if self._event.is_set():
            raise CompilationCancelled(self._reason)
