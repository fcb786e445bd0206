"""Cooperative cancellation."""

import threading


class CancelToken:
    """Abort flag checked by the pipeline between scenes and between beats.

    Setting it never interrupts an in-flight remote call. Safe to set from a
    signal handler or another thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
