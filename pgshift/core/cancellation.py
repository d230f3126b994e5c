"""Cooperative cancellation flag shared by one migration job."""
import threading


class CancellationToken:
    """Shared boolean flag observed at table and batch boundaries.

    Backed by a `threading.Event` so a cancel request may come from a signal
    handler or another thread while the job runs on the event loop.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
