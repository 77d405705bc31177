import asyncio
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .bot import BotHandlers, MatrixBot, MessageIngestor
from .config import AppConfig
from .fetcher import HttpTitleFetcher
from .store import SubscriptionStore
from .web import FeedWebServer

logger = logging.getLogger(__name__)


def setup_logging(log_dir: Optional[Path] = None) -> None:
    """配置日志系统

    - 输出到 stdout（供 journald 收集）
    - 输出到文件（按天轮转，保留30天）
    """
    log_format = "%(asctime)s - %(levelname)s - %(message)s"
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    # 清除已有的 handlers（避免重复添加）
    root_logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(stream_handler)

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=log_dir / "app.log",
            when="midnight",
            interval=1,
            backupCount=30,
            encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(log_format))
        file_handler.suffix = "%Y-%m-%d"
        root_logger.addHandler(file_handler)

    # Suppress noisy library logs
    for name in ("nio", "werkzeug", "urllib3", "aiohttp"):
        logging.getLogger(name).setLevel(logging.WARNING)


class Application:
    """Wires the shared store into the Matrix bot and the feed server"""

    def __init__(self, config: AppConfig, store: Optional[SubscriptionStore] = None):
        self.config = config
        self.store = store or SubscriptionStore(max_items=config.max_feed_items)
        fetcher = HttpTitleFetcher(timeout=config.fetch_timeout, max_bytes=config.max_fetch_bytes)
        self.handlers = BotHandlers(
            self.store,
            MessageIngestor(self.store, fetcher),
            trigger_prefix=config.trigger_prefix,
        )
        self.bot = MatrixBot(
            homeserver_url=config.homeserver_url,
            username=config.bot_username,
            password=config.bot_password,
            handlers=self.handlers,
            display_name=config.display_name,
            device_name=config.device_name,
            sync_timeout_ms=config.sync_timeout_ms,
        )
        self.web_server = FeedWebServer(
            self.store,
            config.homeserver_url,
            host=config.host,
            port=config.port,
        )

    async def run_async(self) -> None:
        """Log in first, then serve feeds while the bot syncs"""
        try:
            await self.bot.login()
            self.web_server.start()
            await self.bot.run_synced()
        finally:
            self.web_server.stop()
            await self.bot.close()

    def run(self) -> None:
        """Start the application (blocking)"""
        try:
            asyncio.run(self.run_async())
        except KeyboardInterrupt:
            logger.info("收到中断信号，退出")
