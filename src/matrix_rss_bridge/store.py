"""
In-memory subscription store shared by the Matrix bot and the feed server.

The bot thread (asyncio loop) mutates it, the Flask worker threads read it.
All access goes through a single reader/writer lock.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Generator, List, Optional

from .models import (
    FeedItem,
    FeedSnapshot,
    RoomSubscription,
    SubscribeResult,
    UnsubscribeResult,
)

logger = logging.getLogger(__name__)

# Maximum items kept per feed
DEFAULT_MAX_ITEMS = 50


class ReadWriteLock:
    """Many concurrent readers or a single writer"""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Generator[None, None, None]:
        with self._cond:
            # 写者优先：有写者等待时新读者阻塞
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Generator[None, None, None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SubscriptionStore:
    """Room subscriptions and their bounded feeds"""

    def __init__(self, max_items: int = DEFAULT_MAX_ITEMS):
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.max_items = max_items
        self._lock = ReadWriteLock()
        # room_id -> feed name, insertion ordered
        self._subscriptions: Dict[str, str] = {}
        # feed name -> items, newest first
        self._feeds: Dict[str, List[FeedItem]] = {}

    def subscribe(self, room_id: str, feed_name: str) -> SubscribeResult:
        """Map a room to a feed name and create its empty feed"""
        with self._lock.write_locked():
            if room_id in self._subscriptions:
                return SubscribeResult.ALREADY_EXISTS
            self._subscriptions[room_id] = feed_name
            # Another room may already publish under the same name; keep its items
            self._feeds.setdefault(feed_name, [])
        logger.info(f"📥 Room {room_id} subscribed as feed '{feed_name}'")
        return SubscribeResult.CREATED

    def unsubscribe(self, room_id: str) -> UnsubscribeResult:
        """Remove a room mapping and discard its feed"""
        with self._lock.write_locked():
            feed_name = self._subscriptions.pop(room_id, None)
            if feed_name is None:
                return UnsubscribeResult.NOT_SUBSCRIBED
            if feed_name not in self._subscriptions.values():
                self._feeds.pop(feed_name, None)
        logger.info(f"📤 Room {room_id} unsubscribed from feed '{feed_name}'")
        return UnsubscribeResult.REMOVED

    def list_subscriptions(self) -> List[RoomSubscription]:
        """Snapshot of all subscriptions in subscription order"""
        with self._lock.read_locked():
            return [
                RoomSubscription(room_id=room_id, feed_name=feed_name)
                for room_id, feed_name in self._subscriptions.items()
            ]

    def is_subscribed(self, room_id: str) -> bool:
        with self._lock.read_locked():
            return room_id in self._subscriptions

    def get_feed_name(self, room_id: str) -> Optional[str]:
        with self._lock.read_locked():
            return self._subscriptions.get(room_id)

    def has_feed(self, feed_name: str) -> bool:
        with self._lock.read_locked():
            return feed_name in self._feeds

    def append_item(self, feed_name: str, item: FeedItem) -> bool:
        """Prepend an item to a feed, evicting the oldest past the cap.

        Returns False (and does nothing) when the feed no longer exists,
        e.g. the room was unsubscribed while the title was being fetched.
        """
        with self._lock.write_locked():
            items = self._feeds.get(feed_name)
            if items is None:
                return False
            items.insert(0, item)
            del items[self.max_items:]
            return True

    def get_feed(self, feed_name: str) -> Optional[FeedSnapshot]:
        """Copy of a feed's items, or None if there is no such feed.

        FeedItem is frozen, so copying the list is enough to isolate the
        snapshot from later mutations.
        """
        with self._lock.read_locked():
            items = self._feeds.get(feed_name)
            if items is None:
                return None
            return FeedSnapshot(name=feed_name, items=list(items))
