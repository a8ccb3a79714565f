import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence
from core.models import Article, ParsedFeed
from core.normalize import hn_item_to_article
from fetchers.base import BaseFetcher

logger = logging.getLogger(__name__)

HN_API_BASE = "https://hacker-news.firebaseio.com/v0"

# listing -> (endpoint, display name)
LISTINGS: Dict[str, tuple] = {
    "top": ("topstories", "Hacker News - Top Stories"),
    "new": ("newstories", "Hacker News - New"),
    "ask": ("askstories", "Hacker News - Ask"),
    "show": ("showstories", "Hacker News - Show"),
}

# Top/new are link posts; ask/show are text posts and keep items without a url.
LINK_LISTINGS = {"top", "new"}

class HackerNewsFetcher(BaseFetcher):
    API_BASE = HN_API_BASE

    async def fetch_feed(self, listing: str, limit: int = 50) -> ParsedFeed:
        _, display_name = LISTINGS[listing]
        articles = await self.fetch_stories(listing, limit)
        return ParsedFeed(name=display_name, origin=f"hn:{listing}", items=articles)

    async def fetch_stories(self, listing: str, limit: int = 50) -> List[Article]:
        endpoint, display_name = LISTINGS[listing]
        try:
            ids = await self.http_client.get_json(f"{self.API_BASE}/{endpoint}.json")
        except Exception as e:
            logger.warning(f"Failed to fetch {display_name} id list: {e}")
            return []

        if not isinstance(ids, list):
            logger.warning(f"Unexpected {display_name} id list payload: {type(ids).__name__}")
            return []

        outcomes = await asyncio.gather(
            *(self._fetch_item(item_id) for item_id in ids[:limit]),
            return_exceptions=True,
        )
        items = self._successful_items(outcomes)

        if listing in LINK_LISTINGS:
            items = [item for item in items if item.get("url")]

        articles = [hn_item_to_article(item) for item in items]
        logger.info(f"Fetched {len(articles)}/{min(limit, len(ids))} items from {display_name}")
        return articles

    async def _fetch_item(self, item_id: int) -> Optional[Dict[str, Any]]:
        return await self.http_client.get_json(f"{self.API_BASE}/item/{item_id}.json")

    @staticmethod
    def _successful_items(outcomes: Sequence[Any]) -> List[Dict[str, Any]]:
        """Keep successful item payloads, preserving list order; drop failures and nulls."""
        items = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.debug(f"Dropped item fetch: {outcome}")
                continue
            if isinstance(outcome, dict):
                items.append(outcome)
        return items
