from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class SubscribeResult(str, Enum):
    """Outcome of a subscribe request"""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class UnsubscribeResult(str, Enum):
    """Outcome of an unsubscribe request"""
    REMOVED = "removed"
    NOT_SUBSCRIBED = "not_subscribed"


@dataclass(frozen=True)
class FeedItem:
    """One captured chat message with its extracted link"""
    sender: str
    content: str
    link: str
    page_name: Optional[str]
    timestamp: datetime


@dataclass(frozen=True)
class RoomSubscription:
    """Room id to feed name mapping"""
    room_id: str
    feed_name: str


@dataclass
class FeedSnapshot:
    """Copy of a feed taken under the store lock, newest item first"""
    name: str
    items: List[FeedItem] = field(default_factory=list)


@dataclass(frozen=True)
class ChatMessage:
    """Text message received in a joined room"""
    room_id: str
    room_name: Optional[str]
    sender: str
    body: str

    @property
    def feed_name(self) -> Optional[str]:
        """Room name without its leading sigil (e.g. '#news' -> 'news')"""
        if not self.room_name:
            return None
        return self.room_name[1:]
