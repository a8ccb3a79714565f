import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from core.aggregator import Aggregator, merge_feeds
from core.config import RSSSources
from core.filters import parse_period
from core.http_client import HTTPClient
from core.models import Article, ParsedFeed

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _make_article(link, hours_ago=1, **overrides) -> Article:
    defaults = dict(
        title=f"Title {link}",
        link=link,
        published_at="",
        published_at_resolved=NOW - timedelta(hours=hours_ago),
    )
    defaults.update(overrides)
    return Article(**defaults)


def _rss(title, link):
    return (
        '<?xml version="1.0"?><rss version="2.0"><channel>'
        f"<title>{title}</title>"
        f"<item><title>{title} post</title><link>{link}</link></item>"
        "</channel></rss>"
    )


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


# ── merge_feeds ───────────────────────────────────────────────

class TestMergeFeeds:
    def test_tags_with_feed_name(self):
        feeds = [
            ParsedFeed("Feed One", "hn:top", [_make_article("a")]),
            ParsedFeed("Feed Two", "https://x/rss", [_make_article("b")]),
        ]
        merged = merge_feeds(feeds, parse_period("24h"), now=NOW)
        assert [(a.link, a.source_name) for a in merged] == [("a", "Feed One"), ("b", "Feed Two")]

    def test_does_not_mutate_input(self):
        article = _make_article("a")
        merge_feeds([ParsedFeed("Feed", "o", [article])], parse_period("24h"), now=NOW)
        assert article.source_name is None

    def test_applies_recency_filter(self):
        feeds = [ParsedFeed("F", "o", [
            _make_article("A", hours_ago=1),
            _make_article("B", hours_ago=10),
            _make_article("C", hours_ago=40),
        ])]
        merged = merge_feeds(feeds, parse_period("24h"), now=NOW)
        assert [a.link for a in merged] == ["A", "B"]

    def test_first_occurrence_wins(self):
        feeds = [
            ParsedFeed("Top", "hn:top", [_make_article("same")]),
            ParsedFeed("New", "hn:new", [_make_article("same"), _make_article("other")]),
        ]
        merged = merge_feeds(feeds, parse_period("24h"), now=NOW)
        assert [(a.link, a.source_name) for a in merged] == [("same", "Top"), ("other", "New")]


# ── Aggregator.fetch_all ──────────────────────────────────────

class TestFetchAll:
    def _handler(self, calls, hn_empty=()):
        def handler(request):
            url = str(request.url)
            calls.append(url)
            if "firebaseio" in url:
                path = request.url.path
                if path.endswith("stories.json"):
                    listing = path.rsplit("/", 1)[-1].replace("stories.json", "")
                    if listing in hn_empty:
                        return httpx.Response(500)
                    return httpx.Response(200, json=[1])
                return httpx.Response(200, content=json.dumps(
                    {"id": 1, "title": "Ask HN: hi", "url": "https://example.com/hn", "time": 1718452800}
                ))
            if "broken" in url:
                return httpx.Response(404)
            name = request.url.host
            return httpx.Response(200, text=_rss(name, f"https://{name}/post"))
        return handler

    @pytest.mark.asyncio
    async def test_fixed_order_and_delays(self):
        calls = []
        sleep = RecordingSleep()
        sources = RSSSources(
            hn=["https://hn.example/rss"],
            x=["https://x.example/rss"],
            custom=["https://custom.example/rss"],
        )
        http = HTTPClient(transport=httpx.MockTransport(self._handler(calls)))
        feeds = await Aggregator(http, sources, sleep=sleep).fetch_all()

        assert [f.origin for f in feeds] == [
            "hn:top", "hn:new", "hn:ask", "hn:show",
            "https://hn.example/rss", "https://x.example/rss", "https://custom.example/rss",
        ]
        assert [f.name for f in feeds][:4] == [
            "Hacker News - Top Stories", "Hacker News - New", "Hacker News - Ask", "Hacker News - Show",
        ]
        assert feeds[4].name == "hn.example"
        # one pause between each pair of RSS fetches
        assert sleep.calls == [1.0, 1.0]
        await http.close()

    @pytest.mark.asyncio
    async def test_empty_feeds_are_dropped(self):
        calls = []
        sleep = RecordingSleep()
        sources = RSSSources(hn=["https://broken.example/rss"], x=[], custom=["https://ok.example/rss"])
        http = HTTPClient(transport=httpx.MockTransport(self._handler(calls, hn_empty={"new", "show"})))
        feeds = await Aggregator(http, sources, sleep=sleep).fetch_all()

        assert [f.origin for f in feeds] == ["hn:top", "hn:ask", "https://ok.example/rss"]
        await http.close()

    @pytest.mark.asyncio
    async def test_no_rss_sources_no_delay(self):
        calls = []
        sleep = RecordingSleep()
        http = HTTPClient(transport=httpx.MockTransport(self._handler(calls)))
        feeds = await Aggregator(http, RSSSources(), sleep=sleep).fetch_all()
        assert len(feeds) == 4
        assert sleep.calls == []
        await http.close()
