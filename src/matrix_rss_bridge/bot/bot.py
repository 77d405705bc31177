import asyncio
import logging
from typing import Optional, Set

from aiohttp import ClientError
from nio import (
    AsyncClient,
    InviteMemberEvent,
    JoinResponse,
    LoginResponse,
    MatrixRoom,
    ProfileSetDisplayNameError,
    RoomMessageText,
    RoomSendResponse,
    SyncResponse,
)

from ..models import ChatMessage
from .handlers import BotHandlers
from .join import join_with_backoff

logger = logging.getLogger(__name__)

# Matrix 同步超时（毫秒）
SYNC_TIMEOUT_MS = 30000

# 重试配置
MAX_RETRIES = 3         # 最大重试次数
RETRY_DELAY = 2.0       # 重试间隔（秒）


class LoginError(RuntimeError):
    """Raised when the bot cannot log in to the homeserver"""


class MatrixBot:
    """Matrix client wrapper"""

    def __init__(
        self,
        homeserver_url: str,
        username: str,
        password: str,
        handlers: BotHandlers,
        display_name: str = "RSS bot",
        device_name: str = "rss bot",
        sync_timeout_ms: int = SYNC_TIMEOUT_MS,
        client: Optional[AsyncClient] = None,
    ):
        self.homeserver_url = homeserver_url
        self.username = username
        self.password = password
        self.handlers = handlers
        self.display_name = display_name
        self.device_name = device_name
        self.sync_timeout_ms = sync_timeout_ms
        self.client = client or AsyncClient(homeserver_url, username)
        # 运行中的后台任务（消息处理、自动加入）
        self._tasks: Set[asyncio.Task] = set()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def login(self) -> None:
        """Log in with username and password"""
        logger.info("Logging in the bot...")
        response = await self.client.login(self.password, device_name=self.device_name)
        if not isinstance(response, LoginResponse):
            raise LoginError(f"Login failed for {self.username}: {response}")
        logger.info(f"✅ Logged in as {self.client.user_id}")

    async def run_synced(self) -> None:
        """Set up callbacks and sync forever; requires a prior login"""
        self.client.add_event_callback(self._on_invite, InviteMemberEvent)

        response = await self.client.set_displayname(self.display_name)
        if isinstance(response, ProfileSetDisplayNameError):
            logger.warning(f"Couldn't set display name: {response.message}")

        # 先同步一次再注册消息回调，不处理启动前的历史消息
        first_sync = await self.client.sync(timeout=self.sync_timeout_ms, full_state=True)
        if not isinstance(first_sync, SyncResponse):
            logger.warning(f"Initial sync failed: {first_sync}")

        self.client.add_event_callback(self._on_message, RoomMessageText)

        logger.info("🤖 Matrix bot started")
        # 完整状态只在首次同步中请求
        await self.client.sync_forever(timeout=self.sync_timeout_ms)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.client.close()

    async def _on_invite(self, room: MatrixRoom, event: InviteMemberEvent) -> None:
        if event.state_key != self.client.user_id or event.membership != "invite":
            # the invite isn't for us
            return
        room_id = room.room_id
        self._spawn(join_with_backoff(room_id, lambda: self._try_join(room_id)))

    async def _try_join(self, room_id: str) -> bool:
        response = await self.client.join(room_id)
        if isinstance(response, JoinResponse):
            return True
        logger.debug(f"Join {room_id} rejected: {response}")
        return False

    async def _on_message(self, room: MatrixRoom, event: RoomMessageText) -> None:
        if event.sender == self.client.user_id:
            return
        message = ChatMessage(
            room_id=room.room_id,
            room_name=room.name,
            sender=event.sender,
            body=event.body,
        )
        # 每条消息独立任务，标题抓取不阻塞同步循环
        self._spawn(self._process_message(message))

    async def _process_message(self, message: ChatMessage) -> None:
        try:
            reply = await self.handlers.handle_message(message)
        except Exception:
            logger.exception(f"处理消息失败 {message.room_id}")
            return
        if reply:
            await self.send_text(message.room_id, reply)

    async def send_text(self, room_id: str, text: str) -> bool:
        """Send a plain text message with retry

        Returns:
            True if sent successfully, False otherwise
        """
        last_error = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await self.client.room_send(
                    room_id,
                    message_type="m.room.message",
                    content={"msgtype": "m.text", "body": text},
                )
            except (ClientError, asyncio.TimeoutError) as e:
                # 网络问题，重试
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    logger.warning(f"发送超时 {room_id}，第 {attempt + 1} 次重试...")
                    await asyncio.sleep(RETRY_DELAY)
                continue

            if isinstance(response, RoomSendResponse):
                return True
            # 服务端拒绝，不重试
            logger.error(f"发送失败 {room_id}: {response}")
            return False

        logger.error(f"发送失败 {room_id}，已重试 {MAX_RETRIES} 次: {last_error}")
        return False
