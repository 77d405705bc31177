import re
from typing import Optional

# scheme, optional www., host with at least one dot, optional path/query
URL_PATTERN = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"[-a-zA-Z0-9()@:%_+.~#?&/=]*"
)

# 大小写敏感，不支持属性；不跨行
TITLE_PATTERN = re.compile(r"<title>(.*?)</title>")


def extract_link(text: str) -> Optional[str]:
    """Return the first http(s) URL in a message body, or None"""
    match = URL_PATTERN.search(text)
    if match is None:
        return None
    return match.group(0)


def extract_title(html: str) -> Optional[str]:
    """Return the inner text of the first <title> tag, or None"""
    match = TITLE_PATTERN.search(html)
    if match is None:
        return None
    return match.group(1)
