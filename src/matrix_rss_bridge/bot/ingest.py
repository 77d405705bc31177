import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from ..extractor import extract_link
from ..fetcher import BaseFetcher
from ..models import ChatMessage, FeedItem
from ..store import SubscriptionStore

logger = logging.getLogger(__name__)


class MessageIngestor:
    """Turns plain room messages into feed items"""

    def __init__(self, store: SubscriptionStore, fetcher: BaseFetcher):
        self.store = store
        self.fetcher = fetcher

    async def _fetch_title(self, link: str) -> Optional[str]:
        # 在线程池中执行同步的 HTTP 请求，避免阻塞事件循环；不持有 store 锁
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self.fetcher.fetch_title, link)
        except Exception as e:
            logger.warning(f"标题抓取异常 {link}: {e}")
            return None

    async def ingest(self, message: ChatMessage) -> Optional[FeedItem]:
        """Capture a message into its room's feed.

        Messages from rooms without an active feed, or without any URL,
        are dropped. A failed title fetch still yields an item, just
        without ``page_name``.

        Returns:
            The stored item, or None if the message was dropped
        """
        feed_name = message.feed_name
        if not feed_name or not self.store.has_feed(feed_name):
            return None

        link = extract_link(message.body)
        if link is None:
            return None

        page_name = await self._fetch_title(link)

        # No await between building the item and appending it, so timestamps
        # follow insertion order
        item = FeedItem(
            sender=message.sender,
            content=message.body,
            link=link,
            page_name=page_name,
            timestamp=datetime.now(timezone.utc),
        )
        if not self.store.append_item(feed_name, item):
            logger.debug(f"Feed '{feed_name}' removed during fetch, dropping {link}")
            return None

        logger.info(f"📝 [{feed_name}] New item from {message.sender}: {link}")
        return item
