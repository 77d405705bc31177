"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from matrix_rss_bridge.bot.handlers import BotHandlers
from matrix_rss_bridge.bot.ingest import MessageIngestor
from matrix_rss_bridge.fetcher import BaseFetcher
from matrix_rss_bridge.models import ChatMessage, FeedItem
from matrix_rss_bridge.store import SubscriptionStore

HOMESERVER = "https://matrix.example.org"


class FakeFetcher(BaseFetcher):
    """Title fetcher backed by a dict; unknown URLs have no title"""

    def __init__(self, titles: Optional[Dict[str, str]] = None):
        self.titles = titles or {}
        self.calls: List[str] = []

    def fetch_title(self, url: str) -> Optional[str]:
        self.calls.append(url)
        return self.titles.get(url)


@pytest.fixture
def store():
    return SubscriptionStore()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def handlers(store, fetcher):
    return BotHandlers(store, MessageIngestor(store, fetcher))


@pytest.fixture
def make_item():
    """Factory for FeedItem objects with increasing timestamps."""
    base = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def _make(n: int = 0, page_name: Optional[str] = None, content: Optional[str] = None):
        return FeedItem(
            sender="@alice:example.org",
            content=content or f"message {n} https://example.com/{n}",
            link=f"https://example.com/{n}",
            page_name=page_name,
            timestamp=base + timedelta(seconds=n),
        )

    return _make


@pytest.fixture
def make_message():
    """Factory for ChatMessage objects."""

    def _make(body: str, room_id: str = "!news:example.org", room_name: Optional[str] = "#news",
              sender: str = "@alice:example.org"):
        return ChatMessage(room_id=room_id, room_name=room_name, sender=sender, body=body)

    return _make


@pytest.fixture
def homeserver_url():
    return HOMESERVER
