"""Thread-safe frame queue with bounded overflow policies."""
from __future__ import annotations

import threading
from collections import deque
from enum import Enum
from typing import Deque, Generic, TypeVar

T = TypeVar("T")


class OverflowPolicy(str, Enum):
    DROP_OLDEST = "drop_oldest"
    LAST_ONLY = "last_only"
    DROP_NEWEST = "drop_newest"


class FrameQueue(Generic[T]):
    """Bounded hand-off between a producer that must never block and one consumer.

    With ``maxlen=1`` and ``LAST_ONLY`` a new frame supersedes an undelivered
    one, so the consumer is never more than one frame behind.
    """

    def __init__(self, maxlen: int = 1, policy: OverflowPolicy = OverflowPolicy.LAST_ONLY):
        self.maxlen = max(1, int(maxlen))
        self.policy = OverflowPolicy(policy)
        self._queue: Deque[T] = deque()
        self._cv = threading.Condition()
        self.dropped_frames = 0

    def put(self, item: T) -> bool:
        """Insert without blocking. Returns False when the item itself was discarded."""
        with self._cv:
            if self.policy == OverflowPolicy.LAST_ONLY:
                self.dropped_frames += len(self._queue)
                self._queue.clear()
            elif len(self._queue) >= self.maxlen:
                if self.policy == OverflowPolicy.DROP_NEWEST:
                    self.dropped_frames += 1
                    return False
                self._queue.popleft()
                self.dropped_frames += 1
            self._queue.append(item)
            self._cv.notify_all()
            return True

    def get(self, timeout: float | None = None) -> T | None:
        with self._cv:
            if not self._queue:
                self._cv.wait(timeout=timeout)
            if not self._queue:
                return None
            return self._queue.popleft()

    def clear(self) -> int:
        """Discard pending frames and wake any waiting consumer. Returns the number discarded."""
        with self._cv:
            discarded = len(self._queue)
            self._queue.clear()
            self._cv.notify_all()
            return discarded

    def size(self) -> int:
        with self._cv:
            return len(self._queue)
