"""
Conversion of upstream payloads into the Article model.

Two shapes are supported: Hacker News API items (JSON dicts) and
feedparser entries. Both paths guarantee a non-empty ``link``.
"""
import re
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from core.models import Article

logger = logging.getLogger(__name__)

HN_ITEM_URL = "https://news.ycombinator.com/item?id={id}"
UNTITLED = "Untitled"


def strip_html(raw_html: Optional[str]) -> str:
    """Reduce an HTML fragment to a single line of plain text."""
    if not raw_html:
        return ""
    text = BeautifulSoup(raw_html, "lxml").get_text(separator=" ", strip=True)
    return re.sub(r"\s+", " ", text).strip()


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """
    Best-effort parse of a date string (RFC 822 or ISO 8601).
    Naive results are taken as UTC. Returns None when nothing matches.
    """
    if not raw or not raw.strip():
        return None
    raw = raw.strip()

    parsed = None
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Could not parse date: {raw}")
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def hn_item_to_article(item: Dict[str, Any]) -> Article:
    """Normalize a Hacker News API item."""
    published_raw = ""
    resolved = None
    unix_time = item.get("time")
    if isinstance(unix_time, (int, float)):
        resolved = datetime.fromtimestamp(unix_time, tz=timezone.utc)
        published_raw = _iso_utc(resolved)

    return Article(
        title=item.get("title") or UNTITLED,
        link=item.get("url") or HN_ITEM_URL.format(id=item.get("id")),
        published_at=published_raw,
        published_at_resolved=resolved,
        content_snippet=strip_html(item.get("text")) or None,
        author=item.get("by"),
        categories=[],
    )


def _entry_html(entry: Any) -> str:
    content = getattr(entry, "content", None)
    if content and isinstance(content, list):
        v = getattr(content[0], "value", None)
        if v:
            return str(v)
    return str(getattr(entry, "summary", "") or getattr(entry, "description", "") or "")


def _full_content(entry: Any) -> Optional[str]:
    content = getattr(entry, "content", None)
    if content and isinstance(content, list):
        v = getattr(content[0], "value", None)
        if v:
            return str(v)
    return None


def _published_resolved(entry: Any) -> Optional[datetime]:
    st = getattr(entry, "published_parsed", None) or getattr(entry, "updated_parsed", None)
    if st:
        try:
            return datetime(*st[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            return None
    return None


def _entry_link(entry: Any, feed_url: str, title: str) -> str:
    link = getattr(entry, "link", None)
    if link:
        return str(link)
    entry_id = getattr(entry, "id", None) or getattr(entry, "guid", None)
    if entry_id and str(entry_id).startswith(("http://", "https://")):
        return str(entry_id)
    return f"{feed_url}#{entry_id or title}"


def _terms(entry: Any) -> List[str]:
    terms = []
    for tag in getattr(entry, "tags", None) or []:
        term = getattr(tag, "term", None)
        if term:
            terms.append(str(term).strip())
    return terms


def entry_to_article(entry: Any, feed_url: str) -> Article:
    """Normalize a feedparser entry. Source tagging is left to the aggregator."""
    title = str(getattr(entry, "title", None) or UNTITLED)
    author = getattr(entry, "author", None) or getattr(entry, "dc_creator", None)

    return Article(
        title=title,
        link=_entry_link(entry, feed_url, title),
        published_at=str(getattr(entry, "published", None) or getattr(entry, "updated", None) or ""),
        published_at_resolved=_published_resolved(entry),
        content_snippet=strip_html(_entry_html(entry)) or None,
        full_content=_full_content(entry),
        author=str(author).strip() if author else None,
        categories=_terms(entry),
    )
