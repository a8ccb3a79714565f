import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from core.config import RSSSources
from core.filters import filter_by_period
from core.http_client import HTTPClient
from core.models import Article, ParsedFeed
from fetchers.hacker_news import HackerNewsFetcher
from fetchers.rss import RSSFetcher

logger = logging.getLogger(__name__)

# Fixed invocation order and per-listing item counts
HN_LISTINGS: Tuple[Tuple[str, int], ...] = (
    ("top", 50),
    ("new", 50),
    ("ask", 30),
    ("show", 30),
)
RSS_DELAY_SECONDS = 1.0


class Aggregator:
    """
    Runs every fetcher in a fixed order and collects the non-empty feeds.
    Merge order is the invocation order, never completion order.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        rss_sources: RSSSources,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.rss_sources = rss_sources
        self.sleep = sleep
        self.hn_fetcher = HackerNewsFetcher(http_client, sleep=sleep)
        self.rss_fetcher = RSSFetcher(http_client, sleep=sleep)

    def rss_urls(self) -> List[str]:
        return list(self.rss_sources.hn) + list(self.rss_sources.x) + list(self.rss_sources.custom)

    async def fetch_all(self) -> List[ParsedFeed]:
        feeds: List[ParsedFeed] = []

        for listing, limit in HN_LISTINGS:
            logger.info(f"Fetching HN {listing} stories...")
            feed = await self.hn_fetcher.fetch_feed(listing, limit)
            self._keep_if_non_empty(feeds, feed)

        for index, url in enumerate(self.rss_urls()):
            if index > 0:
                await self.sleep(RSS_DELAY_SECONDS)
            logger.info(f"Fetching RSS: {url}")
            feed = await self.rss_fetcher.fetch_feed(url)
            self._keep_if_non_empty(feeds, feed)

        logger.info(f"Collected {len(feeds)} non-empty feeds")
        return feeds

    @staticmethod
    def _keep_if_non_empty(feeds: List[ParsedFeed], feed: ParsedFeed) -> None:
        if feed.items:
            feeds.append(feed)
        else:
            logger.debug(f"Dropping empty feed {feed.origin}")


def merge_feeds(feeds: Iterable[ParsedFeed], period_ms: int, now: Optional[datetime] = None) -> List[Article]:
    """
    Flatten feeds into one article list: recency-filter each feed, tag
    every article with its feed name, and keep the first article per link.
    """
    seen = set()
    merged: List[Article] = []
    for feed in feeds:
        for article in filter_by_period(feed.items, period_ms, now=now):
            if article.link in seen:
                logger.debug(f"Duplicate article skipped: {article.title}")
                continue
            seen.add(article.link)
            merged.append(replace(article, source_name=article.source_name or feed.name))
    return merged
