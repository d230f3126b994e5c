"""Fire-and-forget progress notifications."""
import asyncio
import logging
from typing import Callable, List

from pgshift.models.migration import MigrationProgress

logger = logging.getLogger(__name__)

PROGRESS_EVENT = "migration-progress"

ProgressListener = Callable[[str, MigrationProgress], None]


class ProgressChannel:
    """One-directional channel from the migration loop to listeners.

    `emit` never blocks and never raises: a failing listener is logged and
    skipped, and a full queue drops the event. Progress is telemetry only.
    """

    def __init__(self, event_name: str = PROGRESS_EVENT):
        self.event_name = event_name
        self._listeners: List[ProgressListener] = []
        self._queues: List[asyncio.Queue] = []

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a callback receiving `(event_name, progress)`.

        Returns:
            Callable that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def open_queue(self, maxsize: int = 100) -> asyncio.Queue:
        """Subscribe through a bounded queue of MigrationProgress events."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._queues.append(queue)
        return queue

    def close_queue(self, queue: asyncio.Queue) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    def emit(self, progress: MigrationProgress) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.event_name, progress)
            except Exception as e:  # pylint: disable=broad-except
                logger.warning("Progress listener failed: %s", e)

        for queue in list(self._queues):
            try:
                queue.put_nowait(progress)
            except asyncio.QueueFull:
                logger.debug(
                    "Dropped %s event for %s (queue full)", self.event_name, progress.table_name
                )
