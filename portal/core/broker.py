"""
In-process publish/subscribe channel keyed by user id.

Notification writers publish the recipient ids once their transaction has
committed; each open notification stream holds a subscription and re-reads
its feed when woken. Publishing is safe from any thread: wake-ups are
scheduled on the subscriber's own event loop.
"""

import asyncio
import logging
import threading
from collections.abc import Iterable

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_PENDING_KEY = "portal.pending_notify"


class Subscription:
    """Handle returned by NotificationBroker.subscribe(); await wait() for the next signal."""

    def __init__(self, user_id: int, loop: asyncio.AbstractEventLoop) -> None:
        self.user_id = user_id
        self.loop = loop
        self._event = asyncio.Event()

    def _signal(self) -> None:
        self._event.set()

    async def wait(self, timeout: float) -> bool:
        """Wait up to `timeout` seconds. True if signalled, False on timeout."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        self._event.clear()
        return True


class NotificationBroker:
    def __init__(self) -> None:
        self._subscribers: dict[int, list[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id: int) -> Subscription:
        """Register a subscription bound to the running event loop."""
        sub = Subscription(user_id, asyncio.get_running_loop())
        with self._lock:
            self._subscribers.setdefault(user_id, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(sub.user_id)
            if not subs:
                return
            if sub in subs:
                subs.remove(sub)
            if not subs:
                del self._subscribers[sub.user_id]

    def publish(self, user_ids: Iterable[int]) -> None:
        """Wake every subscription of each user in `user_ids`."""
        with self._lock:
            targets = [s for uid in set(user_ids) for s in self._subscribers.get(uid, ())]
        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(sub._signal)
            except RuntimeError:
                # Loop already closed; the stream is gone and will unsubscribe itself.
                logger.debug("Dropped wake-up for closed loop", extra={"user_id": sub.user_id})

    def subscriber_count(self, user_id: int | None = None) -> int:
        with self._lock:
            if user_id is not None:
                return len(self._subscribers.get(user_id, ()))
            return sum(len(v) for v in self._subscribers.values())


broker = NotificationBroker()


def defer_publish(db: Session, user_ids: Iterable[int]) -> None:
    """Remember recipients on the session; they are published after commit."""
    db.info.setdefault(_PENDING_KEY, set()).update(user_ids)


def publish_pending(db: Session) -> None:
    pending = db.info.pop(_PENDING_KEY, None)
    if pending:
        broker.publish(pending)


def discard_pending(db: Session) -> None:
    db.info.pop(_PENDING_KEY, None)
