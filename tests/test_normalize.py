import time
from datetime import datetime, timezone
from types import SimpleNamespace

from core.normalize import entry_to_article, hn_item_to_article, parse_timestamp, strip_html

FEED_URL = "https://example.com/feed.xml"


def _make_entry(**kwargs):
    """Create a mock feedparser entry."""
    defaults = {
        "id": "https://example.com/post-1",
        "guid": None,
        "title": "Test Post",
        "link": "https://example.com/post-1",
        "published": "Sat, 15 Jun 2024 12:00:00 GMT",
        "updated": None,
        "published_parsed": time.struct_time((2024, 6, 15, 12, 0, 0, 5, 167, 0)),
        "updated_parsed": None,
        "summary": "<p>Short <b>summary</b> here.</p>",
        "description": None,
        "content": None,
        "author": "Jane Doe",
        "dc_creator": None,
        "tags": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── strip_html ────────────────────────────────────────────────

class TestStripHtml:
    def test_removes_tags(self):
        assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"

    def test_collapses_whitespace(self):
        assert strip_html("<p>a</p>\n\n<p>b</p>") == "a b"

    def test_empty(self):
        assert strip_html("") == ""
        assert strip_html(None) == ""

    def test_entities(self):
        assert "&" in strip_html("Tom &amp; Jerry")


# ── parse_timestamp ───────────────────────────────────────────

class TestParseTimestamp:
    def test_rfc822(self):
        dt = parse_timestamp("Sat, 15 Jun 2024 12:00:00 GMT")
        assert dt == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def test_iso_with_z(self):
        assert parse_timestamp("2024-06-15T12:00:00Z") == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        assert parse_timestamp("2024-06-15T12:00:00").tzinfo is not None

    def test_garbage(self):
        assert parse_timestamp("yesterday-ish") is None

    def test_empty(self):
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None


# ── hn_item_to_article ────────────────────────────────────────

class TestHnItemToArticle:
    def test_link_post(self):
        item = {"id": 1, "title": "A link", "url": "https://a.dev/x", "time": 1718452800, "by": "pg"}
        a = hn_item_to_article(item)
        assert a.title == "A link"
        assert a.link == "https://a.dev/x"
        assert a.author == "pg"
        assert a.published_at == "2024-06-15T12:00:00Z"
        assert a.published_at_resolved == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert a.categories == []
        assert a.source_name is None

    def test_synthesizes_link_without_url(self):
        a = hn_item_to_article({"id": 42, "title": "Ask HN: x?", "time": 1718452800})
        assert a.link == "https://news.ycombinator.com/item?id=42"

    def test_default_title(self):
        a = hn_item_to_article({"id": 3, "url": "https://x.y"})
        assert a.title == "Untitled"

    def test_text_becomes_plain_snippet(self):
        a = hn_item_to_article({"id": 4, "title": "t", "text": "<p>Hello&#x27;s <i>world</i></p>", "time": 0})
        assert a.content_snippet == "Hello's world"

    def test_missing_time(self):
        a = hn_item_to_article({"id": 5, "title": "t"})
        assert a.published_at == ""
        assert a.published_at_resolved is None


# ── entry_to_article ──────────────────────────────────────────

class TestEntryToArticle:
    def test_basic_conversion(self):
        a = entry_to_article(_make_entry(), FEED_URL)
        assert a.title == "Test Post"
        assert a.link == "https://example.com/post-1"
        assert a.published_at == "Sat, 15 Jun 2024 12:00:00 GMT"
        assert a.published_at_resolved == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert a.content_snippet == "Short summary here."
        assert a.author == "Jane Doe"
        assert a.source_name is None

    def test_uses_content_when_present(self):
        content = [SimpleNamespace(value="<div>Full <em>body</em></div>")]
        a = entry_to_article(_make_entry(content=content), FEED_URL)
        assert a.full_content == "<div>Full <em>body</em></div>"
        assert a.content_snippet == "Full body"

    def test_tags_become_categories(self):
        tags = [SimpleNamespace(term="Rust"), SimpleNamespace(term=" Databases ")]
        a = entry_to_article(_make_entry(tags=tags), FEED_URL)
        assert a.categories == ["Rust", "Databases"]

    def test_default_title(self):
        a = entry_to_article(_make_entry(title=None), FEED_URL)
        assert a.title == "Untitled"

    def test_link_from_url_like_id(self):
        a = entry_to_article(_make_entry(link=None, id="https://example.com/p/9"), FEED_URL)
        assert a.link == "https://example.com/p/9"

    def test_link_synthesized_from_opaque_id(self):
        a = entry_to_article(_make_entry(link=None, id="tag:example.com,2024:9"), FEED_URL)
        assert a.link == f"{FEED_URL}#tag:example.com,2024:9"

    def test_link_synthesized_from_title(self):
        a = entry_to_article(_make_entry(link=None, id=None, guid=None), FEED_URL)
        assert a.link == f"{FEED_URL}#Test Post"

    def test_updated_fallback(self):
        a = entry_to_article(
            _make_entry(
                published=None,
                published_parsed=None,
                updated="2024-06-16T08:00:00Z",
                updated_parsed=time.struct_time((2024, 6, 16, 8, 0, 0, 6, 168, 0)),
            ),
            FEED_URL,
        )
        assert a.published_at == "2024-06-16T08:00:00Z"
        assert a.published_at_resolved == datetime(2024, 6, 16, 8, 0, tzinfo=timezone.utc)

    def test_author_falls_back_to_dc_creator(self):
        a = entry_to_article(_make_entry(author=None, dc_creator="Bob"), FEED_URL)
        assert a.author == "Bob"

    def test_no_snippet(self):
        a = entry_to_article(_make_entry(summary=None), FEED_URL)
        assert a.content_snippet is None
