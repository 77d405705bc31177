import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

# 自动加入房间的退避配置
INITIAL_JOIN_DELAY = 2      # 首次重试间隔（秒）
MAX_JOIN_DELAY = 3600       # 超过该间隔则放弃


async def join_with_backoff(
    room_id: str,
    join: Callable[[], Awaitable[bool]],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    initial_delay: float = INITIAL_JOIN_DELAY,
    max_delay: float = MAX_JOIN_DELAY,
) -> bool:
    """Join a room, retrying with exponential backoff.

    ``join`` returns True on success; a False result or an exception counts
    as a failed attempt. After each failure we wait ``delay`` seconds and
    double it; once the doubled delay exceeds ``max_delay`` we give up.

    Returns:
        True if the room was joined, False if the attempt was abandoned
    """
    delay = initial_delay
    logger.info(f"🚪 Autojoining room {room_id}")

    while True:
        try:
            joined = await join()
            error = None
        except Exception as e:
            joined = False
            error = e

        if joined:
            logger.info(f"✅ Successfully joined room {room_id}")
            return True

        reason = error or "join rejected"
        logger.warning(f"Failed to join room {room_id} ({reason}), retrying in {delay}s")
        await sleep(delay)
        delay *= 2

        if delay > max_delay:
            logger.error(f"❌ Can't join room {room_id} ({reason}), giving up")
            return False
