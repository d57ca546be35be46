"""Observable value cells.

A ``StateFeed`` holds the latest committed value and pushes every new value
to its subscribers in publish order. Async consumers iterate a
``Subscription``; synchronous consumers register listeners.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


_CLOSED = object()


class Subscription(Generic[T]):
    """Async iterator over the values published to a feed."""

    def __init__(self, feed: "StateFeed[T]", initial: T) -> None:
        self._feed = feed
        self._loop = _running_loop()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._queue.put_nowait(initial)

    def push(self, value: T) -> None:
        if not self._closed:
            self._deliver(value)

    def _deliver(self, item: Any) -> None:
        if self._loop is None or self._loop is _running_loop():
            self._queue.put_nowait(item)
            return
        # Published from a worker thread; hand the item to the subscriber's loop.
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            logger.debug("Subscriber loop closed; dropping subscription.")
            self._closed = True

    def pending(self) -> List[T]:
        """Drain values already delivered without waiting."""
        items: List[T] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not _CLOSED:
                items.append(item)
        return items

    async def get(self) -> T:
        """Wait for the next value; raises ``StopAsyncIteration`` once closed."""
        return await self.__anext__()

    def close(self) -> None:
        """Stop delivery and wake any consumer blocked on the next value."""
        self._feed._unsubscribe(self)
        if not self._closed:
            self._closed = True
            self._deliver(_CLOSED)

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class StateFeed(Generic[T]):
    """Thread-safe publish/subscribe cell holding a single current value."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._lock = threading.RLock()
        self._subscriptions: List[Subscription[T]] = []
        self._listeners: List[Listener[T]] = []

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def publish(self, value: T) -> None:
        with self._lock:
            self._value = value
            subscriptions = list(self._subscriptions)
            listeners = list(self._listeners)
            for subscription in subscriptions:
                subscription.push(value)
            for listener in listeners:
                try:
                    listener(value)
                except Exception:
                    logger.exception("Error notifying state listener")

    def subscribe(self) -> Subscription[T]:
        """Start a subscription that first yields the current value."""
        with self._lock:
            subscription = Subscription(self, self._value)
            self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription[T]) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def add_listener(self, listener: Listener[T]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener[T]) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
