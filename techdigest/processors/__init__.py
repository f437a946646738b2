"""Content processing modules."""

from .composer import Composer, Newsletter
from .deduper import Deduper
from .enricher import Enricher, Enrichment, parse_analysis
from .ranking import filter_recent_articles, newest_first, rank_articles
from .ratelimit import RateLimiter

__all__ = [
    "Composer",
    "Deduper",
    "Enricher",
    "Enrichment",
    "Newsletter",
    "RateLimiter",
    "filter_recent_articles",
    "newest_first",
    "parse_analysis",
    "rank_articles",
]
