"""
channel.py — ordered, closeable stage handoff
=============================================
A FIFO shared by exactly one producing stage and one consuming stage.
Closing is explicit: once closed, ``send`` raises ``ChannelClosed`` and
``receive`` keeps returning buffered items until the channel is drained,
then raises ``ChannelClosed`` as the terminal signal.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Iterator, Optional

from melstream.errors import ChannelClosed


class Channel:
    def __init__(self, maxsize: int = 0):
        """*maxsize* <= 0 means unbounded."""
        self._items: deque = deque()
        self._maxsize = maxsize
        self._closed = False
        self._cond = threading.Condition()

    def send(self, item: Any, timeout: Optional[float] = None) -> None:
        """Append *item*, blocking while a bounded channel is full."""
        with self._cond:
            if self._maxsize > 0:
                has_room = self._cond.wait_for(
                    lambda: self._closed or len(self._items) < self._maxsize,
                    timeout,
                )
                if not has_room:
                    raise TimeoutError("channel send timed out")
            if self._closed:
                raise ChannelClosed("send on closed channel")
            self._items.append(item)
            self._cond.notify_all()

    def receive(self, timeout: Optional[float] = None) -> Any:
        """Pop the oldest item; raises ChannelClosed once closed and drained."""
        with self._cond:
            ready = self._cond.wait_for(
                lambda: bool(self._items) or self._closed, timeout
            )
            if not ready:
                raise TimeoutError("channel receive timed out")
            if self._items:
                item = self._items.popleft()
                self._cond.notify_all()
                return item
            raise ChannelClosed("channel closed")

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.receive()
            except ChannelClosed:
                return
