"""RSS 2.0 rendering of a feed snapshot"""
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable, Optional

from .models import FeedItem

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
RSS_DOCS_URL = "https://cyber.harvard.edu/rss/rss.html"
GENERATOR = "matrix-rss-bridge"
LANGUAGE = "en-US"
TTL_MINUTES = 60
CATEGORY = "Matrix"

ET.register_namespace("content", CONTENT_NS)

# XML 1.0 Char 范围之外的字符，如 ANSI 转义 \x1b
INVALID_XML_CHARS = re.compile(r"[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def xml_safe(text: str) -> str:
    """Drop characters that XML 1.0 does not allow"""
    return INVALID_XML_CHARS.sub("", text)


def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def rfc2822(dt: datetime) -> str:
    return format_datetime(_utc(dt))


def _build_item(channel: ET.Element, item: FeedItem, homeserver_url: str) -> None:
    node = ET.SubElement(channel, "item")
    title = item.page_name if item.page_name is not None else item.content
    ET.SubElement(node, "title").text = xml_safe(title)
    ET.SubElement(node, "link").text = xml_safe(item.link)
    ET.SubElement(node, "description").text = xml_safe(item.content)
    ET.SubElement(node, "author").text = xml_safe(item.sender)
    ET.SubElement(node, "source", attrib={"url": homeserver_url}).text = homeserver_url
    ET.SubElement(node, "pubDate").text = rfc2822(item.timestamp)
    ET.SubElement(node, f"{{{CONTENT_NS}}}encoded").text = xml_safe(item.content)


def render_feed(
    feed_name: str,
    items: Iterable[FeedItem],
    homeserver_url: str,
    now: Optional[datetime] = None,
) -> bytes:
    """Serialize a feed to an RSS 2.0 document (UTF-8 bytes).

    Items are written in the order given, which for store snapshots is
    newest first. Channel pubDate and lastBuildDate are both the render
    time, so every call produces a fresh document.
    """
    now = now or datetime.now(timezone.utc)
    feed_name = xml_safe(feed_name)
    build_date = rfc2822(now)

    root = ET.Element("rss", attrib={"version": "2.0"})
    channel = ET.SubElement(root, "channel")
    ET.SubElement(channel, "title").text = f"{feed_name} messages"
    ET.SubElement(channel, "link").text = homeserver_url
    ET.SubElement(channel, "description").text = f"An RSS feed for {feed_name} matrix channel messages"
    ET.SubElement(channel, "language").text = LANGUAGE
    ET.SubElement(channel, "generator").text = GENERATOR
    ET.SubElement(channel, "docs").text = RSS_DOCS_URL
    ET.SubElement(channel, "ttl").text = str(TTL_MINUTES)
    ET.SubElement(channel, "category").text = CATEGORY
    ET.SubElement(channel, "pubDate").text = build_date
    ET.SubElement(channel, "lastBuildDate").text = build_date

    for item in items:
        _build_item(channel, item, homeserver_url)

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
