from .bot import LoginError, MatrixBot
from .handlers import BotHandlers
from .ingest import MessageIngestor

__all__ = ["LoginError", "MatrixBot", "BotHandlers", "MessageIngestor"]
