"""In-process broadcast topics.

A Topic delivers every published message to every subscription that existed
at publish time. Each subscription buffers at most `capacity` messages; a
subscriber that falls further behind loses the oldest messages and is told
so by a Lagged error on its next receive.

Publishing is synchronous and never waits for subscribers, so request
handlers can publish without awaiting delivery.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Deque, Generic, List, TypeVar

T = TypeVar("T")

DEFAULT_CAPACITY = 32


class TopicClosed(Exception):
    """The topic was closed and the subscription has been drained."""


class Lagged(Exception):
    """The subscriber fell behind and `skipped` messages were dropped."""

    def __init__(self, skipped: int) -> None:
        super().__init__(f"subscriber lagged, {skipped} message(s) skipped")
        self.skipped = skipped


class Empty(Exception):
    """No message is currently buffered."""


class Subscription(Generic[T]):
    def __init__(self, topic: "Topic[T]", capacity: int) -> None:
        self._topic = topic
        self._capacity = capacity
        self._buf: Deque[T] = deque()
        self._skipped = 0
        self._wakeup = asyncio.Event()

    def _push(self, message: T) -> None:
        if len(self._buf) >= self._capacity:
            self._buf.popleft()
            self._skipped += 1
        self._buf.append(message)
        self._wakeup.set()

    def _wake(self) -> None:
        self._wakeup.set()

    def try_recv(self) -> T:
        """Return the next buffered message without waiting.

        Raises Lagged once after an overflow, TopicClosed when the topic is
        closed and nothing is left, Empty otherwise.
        """
        if self._skipped:
            skipped, self._skipped = self._skipped, 0
            raise Lagged(skipped)
        if self._buf:
            return self._buf.popleft()
        if self._topic.closed:
            raise TopicClosed(self._topic.name)
        raise Empty()

    async def recv(self) -> T:
        while True:
            try:
                return self.try_recv()
            except Empty:
                self._wakeup.clear()
                await self._wakeup.wait()

    def close(self) -> None:
        self._topic._unsubscribe(self)

    def __len__(self) -> int:
        return len(self._buf)


class Topic(Generic[T]):
    """Bounded multi-consumer broadcast topic."""

    def __init__(self, name: str, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.name = name
        self.capacity = capacity
        self._subs: List[Subscription[T]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def subscribe(self) -> Subscription[T]:
        sub: Subscription[T] = Subscription(self, self.capacity)
        if not self._closed:
            self._subs.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription[Any]) -> None:
        if sub in self._subs:
            self._subs.remove(sub)

    def publish(self, message: T) -> int:
        """Deliver `message` to current subscribers.

        Returns how many subscribers received it; zero is not an error.
        Raises TopicClosed if the topic has been closed.
        """
        if self._closed:
            raise TopicClosed(self.name)
        subs = list(self._subs)
        for sub in subs:
            sub._push(message)
        return len(subs)

    def close(self) -> None:
        self._closed = True
        subs, self._subs = self._subs, []
        for sub in subs:
            sub._wake()
