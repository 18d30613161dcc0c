"""Cooperative cancellation of an in-flight turn."""

from __future__ import annotations

import threading


class CancellationToken:
    """Flag a consumer sets to ask the producer to stop issuing LLM calls.

    The exploration loop checks the token before every LLM round; work
    already in flight completes. Thread-safe, so a delivery layer can
    cancel from another thread when a client disconnects.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel("client disconnected")
        >>> token.cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation; later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Reason given to the first ``cancel`` call."""
        return self._reason


__all__ = ["CancellationToken"]
