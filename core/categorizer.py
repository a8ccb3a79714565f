import logging
from typing import Dict, List, Optional, Sequence

from core.filters import EPOCH, filter_by_categories
from core.models import Article, CategoryBucket

logger = logging.getLogger(__name__)

TOP_STORIES = "Top Stories"
TECH = "Tech"
STARTUP = "Startup"
ASK_HN = "Ask HN"
SHOW_HN = "Show HN"

BUCKET_CAPS: Dict[str, int] = {
    TOP_STORIES: 30,
    TECH: 20,
    STARTUP: 20,
    ASK_HN: 10,
    SHOW_HN: 10,
}


def _resolved_or_epoch(article: Article):
    resolved = article.published_at_resolved
    if resolved is None:
        return EPOCH
    return resolved if resolved.tzinfo else resolved.replace(tzinfo=EPOCH.tzinfo)


def _title_contains(articles: Sequence[Article], needle: str) -> List[Article]:
    return [a for a in articles if needle in (a.title or "").lower()]


def categorize(articles: Sequence[Article], category_keywords: Optional[Dict[str, List[str]]] = None) -> List[CategoryBucket]:
    """
    Build the named buckets in fixed order. Buckets are independent views
    over the same articles, so one article may appear in several of them.
    Each bucket is truncated to its cap here.
    """
    category_keywords = category_keywords or {}
    articles = list(articles)

    # sorted() is stable, so equal timestamps keep encounter order
    newest_first = sorted(articles, key=_resolved_or_epoch, reverse=True)

    selections = [
        (TOP_STORIES, newest_first),
        (TECH, filter_by_categories(articles, category_keywords.get("tech"))),
        (STARTUP, filter_by_categories(articles, category_keywords.get("startup"))),
        (ASK_HN, _title_contains(articles, "ask hn")),
        (SHOW_HN, _title_contains(articles, "show hn")),
    ]

    buckets = []
    for name, selected in selections:
        cap = BUCKET_CAPS[name]
        buckets.append(CategoryBucket(name=name, cap=cap, articles=selected[:cap]))
        logger.debug(f"{name}: {min(len(selected), cap)}/{len(selected)} articles")
    return buckets
