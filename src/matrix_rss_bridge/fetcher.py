import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

import requests

from .extractor import extract_title

logger = logging.getLogger(__name__)

USER_AGENT = "MatrixRSSBridge/1.0"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_BYTES = 1024 * 1024
CHUNK_SIZE = 16 * 1024


class BaseFetcher(ABC):
    """Abstract base class for page title fetchers"""

    @abstractmethod
    def fetch_title(self, url: str) -> Optional[str]:
        """Fetch a page and return its title, or None on any failure"""
        pass


class HttpTitleFetcher(BaseFetcher):
    """HTTP-based title fetcher with a timeout and a body size cap"""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, max_bytes: int = DEFAULT_MAX_BYTES):
        self.timeout = timeout
        self.max_bytes = max_bytes

    def fetch_title(self, url: str) -> Optional[str]:
        try:
            html = self._fetch_content(url)
        except requests.RequestException as e:
            logger.debug(f"标题抓取失败 {url}: {e}")
            return None
        return extract_title(html)

    def _fetch_content(self, url: str) -> str:
        """Fetch at most max_bytes of the page body and decode it

        The whole download, not just each socket read, must finish within
        ``timeout`` seconds, otherwise requests.Timeout is raised.
        """
        deadline = time.monotonic() + self.timeout
        with requests.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=self.timeout,
            stream=True,
        ) as response:
            response.raise_for_status()
            body = b""
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise requests.Timeout(f"Reading {url} took longer than {self.timeout}s")
                body += chunk
                if len(body) >= self.max_bytes:
                    body = body[:self.max_bytes]
                    break
            # requests 对无 charset 的 text/html 默认 ISO-8859-1，这里改用 utf-8
            content_type = response.headers.get("Content-Type", "")
            if "charset" in content_type.lower() and response.encoding:
                encoding = response.encoding
            else:
                encoding = "utf-8"
        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            # Unknown charset advertised by the server
            return body.decode("utf-8", errors="replace")
