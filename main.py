import argparse
import logging
import asyncio
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional
from dotenv import load_dotenv

from core.config import Config, ConfigError, load_config, load_secrets
from core.http_client import HTTPClient
from core.aggregator import Aggregator, merge_feeds
from core.filters import parse_period
from core.categorizer import categorize
from core.ai import RunContext, build_summarizer
from core.formatter import create_report_data, to_markdown
from core.models import Article, CategoryBucket
from core.publisher import EmailPublisher, save_digest


logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number < 1:
        raise argparse.ArgumentTypeError(f"{value!r} must be at least 1")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a Hacker News digest and optionally email it")
    parser.add_argument("--period", help='Recency window such as "24h" or "7d" (default: from config)')
    parser.add_argument("--articles", type=positive_int, help="Articles per category (default: from config)")
    parser.add_argument("--config", help="Path to the YAML config file (default: config.yaml)")
    parser.add_argument("--send-email", action="store_true", help="Email the digest after saving it")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    overrides = {}
    if args.period:
        overrides["period"] = args.period
    if args.articles:
        overrides["articles_per_category"] = args.articles
    return replace(config, **overrides)


def select_for_summary(buckets: List[CategoryBucket], articles_per_category: int) -> List[Article]:
    """The articles that will be shown, each link once, in bucket order."""
    seen = set()
    selected = []
    for bucket in buckets:
        for article in bucket.articles[:articles_per_category]:
            if article.link not in seen:
                seen.add(article.link)
                selected.append(article)
    return selected


async def main(args: argparse.Namespace) -> int:
    logger.info("🚀 Starting Hacker News Digest Generator...")

    config = apply_overrides(load_config(args.config), args)
    period_ms = parse_period(config.period)
    secrets = load_secrets(config.email)

    logger.info(f"📅 Period: {config.period}")
    logger.info(f"📊 Articles per category: {config.articles_per_category}")

    http = HTTPClient()
    try:
        # 1. Fetch
        logger.info("📥 Fetching feeds...")
        feeds = await Aggregator(http, config.rss_sources).fetch_all()

        # 2. Filter by period, tag sources
        articles = merge_feeds(feeds, period_ms)
        logger.info(f"Found {len(articles)} articles within {config.period}")

        # 3. Categorize
        logger.info("📂 Categorizing articles...")
        buckets = categorize(articles, config.categories)

        # 4. Summarize
        ctx = RunContext()
        summarizer = build_summarizer(config, secrets, http)
        to_summarize = select_for_summary(buckets, config.articles_per_category)
        logger.info(f"🤖 Summarizing {len(to_summarize)} articles...")
        summaries = await summarizer.summarize_articles(to_summarize, ctx)
        if ctx.quota_exceeded:
            logger.warning("LLM quota was exceeded during this run; some summaries use the snippet fallback")
    finally:
        await http.close()

    # 5. Render and deliver
    logger.info("📝 Generating report...")
    now = datetime.now(timezone.utc)
    report = create_report_data(config.period, config.articles_per_category, buckets, summaries, now=now)
    markdown = to_markdown(report)
    print(markdown)
    save_digest(markdown, config.output_dir, now.date())

    if args.send_email:
        publisher = EmailPublisher(secrets)
        if not publisher.is_configured():
            logger.warning("--send-email given but EMAIL_TO / EMAIL_FROM / EMAIL_PASSWORD are not all set")
        elif not await publisher.send_digest(report, now.date()):
            logger.error("Email delivery failed; the digest file was still written")

    logger.info("✅ Done!")
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        return asyncio.run(main(args))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(run())
