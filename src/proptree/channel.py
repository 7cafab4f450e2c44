"""Bounded, closable channel carrying mutation events between threads."""

import threading
from collections import deque
from typing import Deque, Generic, Iterator, Optional, Tuple, TypeVar

from .exceptions import PropTreeError

T = TypeVar("T")


class ChannelClosedError(PropTreeError):
    """Raised when sending on a closed channel."""

    pass


class MutationChannel(Generic[T]):
    """Thread-safe channel with a fixed capacity.

    With ``capacity == 0`` every send is a rendezvous: :meth:`send` returns only
    once a receiver has taken the item. With a positive capacity, :meth:`send`
    blocks only while the buffer is full. Receivers drain buffered items after
    :meth:`close` and then observe ``ok == False``.
    """

    def __init__(self, capacity: int = 0):
        """Initialize the channel.

        Args:
            capacity: Number of items buffered before ``send`` blocks
        """
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._buffer: Deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._sent = 0
        self._taken = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._buffer)

    def send(self, item: T) -> None:
        """Put ``item`` on the channel, blocking without deadline.

        Raises:
            ChannelClosedError: If the channel is closed
        """
        room = max(self.capacity, 1)
        with self._cond:
            while not self._closed and len(self._buffer) >= room:
                self._cond.wait()
            if self._closed:
                raise ChannelClosedError("send on closed mutation channel")
            self._buffer.append(item)
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()
            if self.capacity == 0:
                while self._taken < ticket and not self._closed:
                    self._cond.wait()

    def receive(self, timeout: Optional[float] = None) -> Tuple[Optional[T], bool]:
        """Take the next item.

        Args:
            timeout: Seconds to wait  # (None waits forever)

        Returns:
            ``(item, True)``, or ``(None, False)`` once closed and drained

        Raises:
            TimeoutError: If nothing arrived within ``timeout``
        """
        with self._cond:
            self._cond.wait_for(lambda: self._buffer or self._closed, timeout)
            if not self._buffer:
                if self._closed:
                    return None, False
                raise TimeoutError("no mutation received")
            item = self._buffer.popleft()
            self._taken += 1
            self._cond.notify_all()
            return item, True

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            item, ok = self.receive()
            if not ok:
                return
            yield item
