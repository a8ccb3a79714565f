from dataclasses import dataclass, field
from datetime import datetime, timezone
from html import escape
from typing import List, Optional, Sequence

from core.models import CategoryBucket, SummaryMap

REPORT_TITLE = "Hacker News Digest"
NO_SUMMARY = "No summary available"

CATEGORY_ICONS = {
    "Top Stories": "🔥",
    "Ask HN": "❓",
    "Show HN": "💡",
    "Tech": "🖥️",
    "Startup": "🚀",
}
DEFAULT_ICON = "📰"


@dataclass
class FormattedArticle:
    title: str
    summary: str
    link: str
    published_at: str
    source: Optional[str] = None


@dataclass
class ReportSection:
    name: str
    icon: str
    articles: List[FormattedArticle] = field(default_factory=list)


@dataclass
class ReportData:
    title: str
    period: str
    article_count: int
    generated_at: str
    sections: List[ReportSection] = field(default_factory=list)


def format_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S") + "Z"


def create_report_data(
    period: str,
    articles_per_category: int,
    buckets: Sequence[CategoryBucket],
    summaries: SummaryMap,
    now: Optional[datetime] = None,
) -> ReportData:
    """
    Apply the display limit to each bucket and attach summaries.
    A missing or empty summary falls back to the snippet.
    """
    sections = []
    for bucket in buckets:
        articles = [
            FormattedArticle(
                title=article.title,
                summary=summaries.get(article.link) or (article.content_snippet or "")[:150] or NO_SUMMARY,
                link=article.link,
                published_at=article.published_at,
                source=article.source_name,
            )
            for article in bucket.articles[:articles_per_category]
        ]
        sections.append(ReportSection(
            name=bucket.name,
            icon=CATEGORY_ICONS.get(bucket.name, DEFAULT_ICON),
            articles=articles,
        ))

    return ReportData(
        title=REPORT_TITLE,
        period=period,
        article_count=articles_per_category,
        generated_at=format_timestamp(now or datetime.now(timezone.utc)),
        sections=sections,
    )


def to_markdown(data: ReportData) -> str:
    lines: List[str] = []
    lines.append(f"# {data.title}")
    lines.append("")
    lines.append(f"**Period:** Last {data.period} | **Articles per section:** {data.article_count}")
    lines.append(f"**Generated:** {data.generated_at}")
    lines.append("")
    lines.append("---")
    lines.append("")

    for section in data.sections:
        if not section.articles:
            continue
        lines.append(f"### {section.icon} {section.name}")
        lines.append("")
        for article in section.articles:
            lines.append(f"**{article.title}**")
            lines.append("")
            lines.append(f"> {article.summary}")
            lines.append("")
            lines.append(f"[Read more]({article.link})")
            lines.append("")
            lines.append("---")
            lines.append("")

    lines.append("")
    lines.append("---")
    lines.append(f"*Generated automatically by {data.title}*")
    return "\n".join(lines) + "\n"

HTML_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; background: #f5f5f5; }
    .header { background: #ff6600; color: white; padding: 20px; border-radius: 8px 8px 0 0; }
    .header h1 { margin: 0; }
    .meta { font-size: 14px; opacity: 0.9; }
    .section { background: white; margin: 10px 0; padding: 20px; border-radius: 8px; }
    .section h2 { margin-top: 0; color: #333; }
    .article { border-bottom: 1px solid #eee; padding: 15px 0; }
    .article:last-child { border-bottom: none; }
    .article h3 { margin: 0 0 10px 0; }
    .article h3 a { color: #ff6600; text-decoration: none; }
    .summary { color: #555; margin: 10px 0; }
    .footer { text-align: center; color: #888; font-size: 12px; padding: 20px; }
"""


def to_html(data: ReportData) -> str:
    parts: List[str] = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '  <meta charset="utf-8">',
        f"  <style>{HTML_STYLE}  </style>",
        "</head>",
        "<body>",
        '  <div class="header">',
        f"    <h1>{escape(data.title)}</h1>",
        f'    <div class="meta">Period: Last {escape(data.period)} | Articles: {data.article_count} per section'
        f" | Generated: {escape(data.generated_at)}</div>",
        "  </div>",
    ]

    for section in data.sections:
        if not section.articles:
            continue
        parts.append('  <div class="section">')
        parts.append(f"    <h2>{section.icon} {escape(section.name)}</h2>")
        for article in section.articles:
            parts.append('    <div class="article">')
            parts.append(f'      <h3><a href="{escape(article.link, quote=True)}">{escape(article.title)}</a></h3>')
            parts.append(f'      <div class="summary">{escape(article.summary)}</div>')
            parts.append("    </div>")
        parts.append("  </div>")

    parts.append(f'  <div class="footer">Generated automatically by {escape(data.title)}</div>')
    parts.append("</body>")
    parts.append("</html>")
    return "\n".join(parts)
