"""Bounded completion channel between workers and the UI thread."""

from __future__ import annotations

import logging
import threading
from queue import Empty, Full, Queue

from .messages import CompletionMessage

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 64


class CompletionChannel:
    """FIFO with many producers and one consumer.

    ``send`` never blocks. Messages are not re-issued, so the capacity is
    sized well above the number of operations that can be in flight; when
    the queue is full anyway, the oldest unread message is dropped.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("channel capacity must be positive")
        self.capacity = capacity
        self._queue: Queue[CompletionMessage] = Queue(maxsize=capacity)
        self._overflow_lock = threading.Lock()
        self._dropped = 0
        self._dropped_ids: list[int] = []

    @property
    def dropped(self) -> int:
        return self._dropped

    def send(self, message: CompletionMessage) -> None:
        try:
            self._queue.put_nowait(message)
            return
        except Full:
            pass

        with self._overflow_lock:
            while True:
                try:
                    self._queue.put_nowait(message)
                    return
                except Full:
                    pass
                try:
                    oldest = self._queue.get_nowait()
                except Empty:
                    continue
                self._dropped += 1
                self._dropped_ids.append(oldest.task_id)
                logger.warning(
                    "completion channel full; dropped %s message for %r",
                    oldest.kind.value,
                    oldest.entry_key,
                )

    def take_dropped(self) -> list[int]:
        """Return and forget the task ids of messages lost to overflow."""
        with self._overflow_lock:
            dropped, self._dropped_ids = self._dropped_ids, []
        return dropped

    def receive_nowait(self) -> CompletionMessage | None:
        try:
            return self._queue.get_nowait()
        except Empty:
            return None

    def drain(self) -> list[CompletionMessage]:
        """Return every message currently available, in arrival order."""
        out: list[CompletionMessage] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except Empty:
                break
        return out

    def __len__(self) -> int:
        return self._queue.qsize()
