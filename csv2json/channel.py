"""
Zero-capacity handoff between the reader and writer threads.

A send completes only once the receiver has taken the item, so the producer
can never run ahead of the consumer by more than one record. Closing the
channel is the end-of-stream signal; closing it with an error tells the
other side the stream was cut short.
"""

from __future__ import annotations

import threading
from typing import Any, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_EMPTY = object()


class ChannelClosed(Exception):
    """Raised on send or receive once the channel has been closed."""


class RendezvousChannel(Generic[T]):
    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._slot: Any = _EMPTY
        self._sent = 0
        self._taken = 0
        self._closed = False
        self._error: Optional[BaseException] = None

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, item: T) -> None:
        """Block until a receiver takes ``item``."""
        with self._cond:
            while self._slot is not _EMPTY and not self._closed:
                self._cond.wait()
            if self._closed:
                raise ChannelClosed("send on closed channel")

            self._slot = item
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()

            while self._taken < ticket and not self._closed:
                self._cond.wait()
            if self._taken < ticket:
                # closed before anyone picked it up
                self._slot = _EMPTY
                raise ChannelClosed("channel closed before the item was received")

    def receive(self) -> T:
        """
        Block until an item is available.

        Raises ChannelClosed after a clean close, or the error the channel
        was closed with.
        """
        with self._cond:
            while self._slot is _EMPTY and not self._closed:
                self._cond.wait()
            if self._slot is _EMPTY:
                if self._error is not None:
                    raise self._error
                raise ChannelClosed("receive on closed channel")

            item = self._slot
            self._slot = _EMPTY
            self._taken += 1
            self._cond.notify_all()
            return item

    def close(self, error: Optional[BaseException] = None) -> None:
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._error = error
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.receive()
            except ChannelClosed:
                return
