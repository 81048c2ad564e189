"""Process-wide "something changed" broadcast used by job waiters.

The hub carries no payload. Each subscription keeps a single pending slot, so
several notifications that arrive before a waiter wakes up collapse into one
wakeup. Waiters must therefore re-read the registry after every wakeup, and
must subscribe *before* their first registry read or a transition that lands
in between is never seen.

All methods are meant to be called from the event loop thread.
"""

from __future__ import annotations

import asyncio


class Subscription:
    def __init__(self, hub: NotificationHub) -> None:
        self._hub = hub
        self._pending = asyncio.Event()

    def _signal(self) -> None:
        self._pending.set()

    async def wait(self) -> bool:
        """Suspend until the next notification.

        Returns ``False`` once the hub is closed.
        """
        if self._hub.closed:
            return False
        await self._pending.wait()
        self._pending.clear()
        return not self._hub.closed

    def close(self) -> None:
        self._hub.unsubscribe(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class NotificationHub:
    def __init__(self) -> None:
        self._subscribers: set[Subscription] = set()
        self._closed = False
        self._sent = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def sent_count(self) -> int:
        return self._sent

    def subscribe(self) -> Subscription:
        sub = Subscription(self)
        if self._closed:
            sub._signal()
        else:
            self._subscribers.add(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        self._subscribers.discard(sub)

    def notify(self) -> None:
        if self._closed:
            return
        self._sent += 1
        for sub in list(self._subscribers):
            sub._signal()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for sub in list(self._subscribers):
            sub._signal()
        self._subscribers.clear()
