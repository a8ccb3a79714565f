from dataclasses import dataclass, field
from typing import Dict, List, Optional
from datetime import datetime

@dataclass
class Article:
    title: str
    link: str  # Canonical URL, join key for summaries and dedup
    published_at: str  # Raw, source-native date string
    published_at_resolved: Optional[datetime] = None  # Parsed date when the source provides one
    content_snippet: Optional[str] = None  # Plain-text excerpt
    full_content: Optional[str] = None
    author: Optional[str] = None
    categories: List[str] = field(default_factory=list)  # Source-declared tags
    source_name: Optional[str] = None  # Set by the aggregator

@dataclass
class ParsedFeed:
    name: str
    origin: str  # Feed URL or "hn:<listing>"
    items: List[Article] = field(default_factory=list)

@dataclass
class CategoryBucket:
    name: str
    cap: int
    articles: List[Article] = field(default_factory=list)

# article link -> summary text
SummaryMap = Dict[str, str]
