import re
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from core.config import ConfigError
from core.models import Article
from core.normalize import parse_timestamp

logger = logging.getLogger(__name__)

PERIOD_PATTERN = re.compile(r"([0-9]+)([hd])")
MS_PER_UNIT = {
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
}

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_period(period: str) -> int:
    """
    Parse a period such as "24h" or "7d" into milliseconds.
    Anything else is a configuration error.
    """
    match = PERIOD_PATTERN.fullmatch(period or "")
    if not match:
        raise ConfigError(f'Invalid period format {period!r}. Use format like "24h" or "7d"')
    value, unit = match.groups()
    return int(value) * MS_PER_UNIT[unit]


def article_timestamp(article: Article) -> datetime:
    """
    Resolved date, else the raw date parsed best-effort, else the epoch.
    Unparseable dates therefore fall outside any realistic period.
    """
    if article.published_at_resolved is not None:
        resolved = article.published_at_resolved
        return resolved if resolved.tzinfo else resolved.replace(tzinfo=timezone.utc)
    return parse_timestamp(article.published_at) or EPOCH


def filter_by_period(articles: Iterable[Article], period_ms: int, now: Optional[datetime] = None) -> List[Article]:
    """Keep articles published at or after ``now - period``."""
    now = now or datetime.now(timezone.utc)
    cutoff_ms = now.timestamp() * 1000 - period_ms
    return [a for a in articles if article_timestamp(a).timestamp() * 1000 >= cutoff_ms]


def filter_by_categories(articles: Iterable[Article], keywords: Optional[Iterable[str]]) -> List[Article]:
    """
    Keep articles where any keyword is a substring of the title or snippet,
    or equals one of the declared categories. Case-insensitive.
    An empty keyword list keeps everything.
    """
    articles = list(articles)
    lowered = [k.casefold() for k in (keywords or [])]
    if not lowered:
        return articles

    matched = []
    for article in articles:
        title = (article.title or "").casefold()
        snippet = (article.content_snippet or "").casefold()
        declared = {c.casefold() for c in article.categories or []}
        if any(k in title or k in snippet or k in declared for k in lowered):
            matched.append(article)
    return matched
