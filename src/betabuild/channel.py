# channel.py
from __future__ import annotations

import queue
import threading
from typing import Generic, Iterator, Optional, TypeVar

from .errors import ChannelClosed

T = TypeVar("T")

# Posted once on close; every consumer that sees it puts it back so the
# next consumer wakes up too.
_CLOSED = object()


class JobChannel(Generic[T]):
    """
    Handoff queue between the supervisor and its workers.

    - put() blocks while a job is already waiting to be picked up, so the
      pusher never runs ahead of a saturated pool.
    - close() may be called exactly once, after the last put().
    - get() returns jobs until the channel is closed and drained, then None.
    """

    def __init__(self, capacity: int = 1):
        self._q: "queue.Queue[object]" = queue.Queue(maxsize=max(1, capacity))
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: T) -> None:
        """Push one job, blocking until a worker has room for it."""
        with self._lock:
            if self._closed:
                raise ChannelClosed("put on closed channel")
        self._q.put(item)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed("close of closed channel")
            self._closed = True
        self._q.put(_CLOSED)

    def get(self) -> Optional[T]:
        item = self._q.get()
        if item is _CLOSED:
            self._q.put(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.get()
            if item is None:
                return
            yield item
