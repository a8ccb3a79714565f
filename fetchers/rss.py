import logging
import feedparser
import httpx
from tenacity import AsyncRetrying, RetryError, retry_if_exception, stop_after_attempt, wait_incrementing
from core.models import ParsedFeed
from core.normalize import entry_to_article
from fetchers.base import BaseFetcher

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 3
UNKNOWN_FEED = "Unknown Feed"


def is_transient(exc: BaseException) -> bool:
    """Rate limiting (429) and server errors (5xx) are worth retrying."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


class RSSFetcher(BaseFetcher):

    async def fetch_feed(self, feed_url: str, retries: int = DEFAULT_RETRIES) -> ParsedFeed:
        try:
            content = await self._fetch_with_retry(feed_url, retries)
        except RetryError as e:
            logger.error(f"Giving up on feed {feed_url} after {retries} attempts: {e.last_attempt.exception()}")
            return self.empty_feed(feed_url, feed_url)
        except Exception as e:
            logger.error(f"Error fetching feed {feed_url}: {e}")
            return self.empty_feed(feed_url, feed_url)

        feed = feedparser.parse(content)
        if feed.bozo and not feed.entries:
            logger.error(f"Error parsing feed {feed_url}: {feed.get('bozo_exception')}")
            return self.empty_feed(feed_url, feed_url)

        articles = []
        for entry in feed.entries:
            try:
                articles.append(entry_to_article(entry, feed_url))
            except Exception as e:
                logger.warning(f"Error parsing entry in {feed_url}: {e}")
                continue

        title = feed.feed.get("title") or UNKNOWN_FEED
        logger.info(f"Parsed {len(articles)} entries from {title}")
        return ParsedFeed(name=title, origin=feed_url, items=articles)

    async def _fetch_with_retry(self, feed_url: str, retries: int) -> str:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, retries)),
            wait=wait_incrementing(start=2, increment=2),
            retry=retry_if_exception(is_transient),
            before_sleep=self._log_retry,
            sleep=self.sleep,
        ):
            with attempt:
                return await self.http_client.get_text(feed_url)

    @staticmethod
    def _log_retry(retry_state):
        exc = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(f"Feed fetch failed ({exc}), retrying in {delay:.0f}s...")
