import logging
from typing import List, Optional

from ..models import ChatMessage, SubscribeResult, UnsubscribeResult
from ..store import SubscriptionStore
from .ingest import MessageIngestor

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER = "!rss"

USAGE_TEXT = "Accepted commands are: subscribe, unsubscribe, list"
NO_ROOM_NAME_TEXT = "Please set a room name first"


class BotHandlers:
    """Matrix room message handlers"""

    def __init__(
        self,
        store: SubscriptionStore,
        ingestor: MessageIngestor,
        trigger_prefix: str = DEFAULT_TRIGGER,
    ):
        self.store = store
        self.ingestor = ingestor
        self.trigger_prefix = trigger_prefix

    def is_command(self, body: str) -> bool:
        return body.startswith(self.trigger_prefix)

    async def handle_message(self, message: ChatMessage) -> Optional[str]:
        """Dispatch a room message.

        Returns:
            Reply text for commands, None for ingested (or dropped) messages
        """
        if self.is_command(message.body):
            return self.handle_command(message)
        await self.ingestor.ingest(message)
        return None

    def handle_command(self, message: ChatMessage) -> str:
        """Handle an ``!rss <command>`` message and build the reply"""
        command = message.body.split(" ")

        if len(command) != 2:
            return USAGE_TEXT

        feed_name = message.feed_name
        if not feed_name:
            return NO_ROOM_NAME_TEXT

        action = command[1]
        if action == "subscribe":
            return self.subscribe(message.room_id, feed_name)
        if action == "unsubscribe":
            return self.unsubscribe(message.room_id, feed_name)
        if action == "list":
            return self.list_subscriptions()
        return USAGE_TEXT

    def subscribe(self, room_id: str, feed_name: str) -> str:
        """Handle ``!rss subscribe``"""
        result = self.store.subscribe(room_id, feed_name)
        if result == SubscribeResult.ALREADY_EXISTS:
            return f"Already subscribed to room \"{feed_name}\""
        logger.info(f"✅ {room_id} 订阅了 {feed_name}")
        return f"Successfully subscribed to room \"{feed_name}\""

    def unsubscribe(self, room_id: str, feed_name: str) -> str:
        """Handle ``!rss unsubscribe``"""
        result = self.store.unsubscribe(room_id)
        if result == UnsubscribeResult.NOT_SUBSCRIBED:
            return f"Already unsubscribed from room \"{feed_name}\""
        logger.info(f"🗑️ {room_id} 取消订阅 {feed_name}")
        return f"Successfully unsubscribed from room \"{feed_name}\""

    def list_subscriptions(self) -> str:
        """Handle ``!rss list``"""
        lines: List[str] = ["Subscribed to:"]
        for subscription in self.store.list_subscriptions():
            lines.append(f"- {subscription.feed_name} ({subscription.room_id})")
        return "\n".join(lines)
