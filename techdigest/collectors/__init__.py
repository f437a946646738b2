"""Content collectors for various sources."""

from .base import Article, Collector, TrendingRepo
from .github import GitHubTrendingCollector
from .hackernews import HackerNewsCollector
from .reddit import RedditCollector
from .rss import RSSCollector

__all__ = [
    "Article",
    "Collector",
    "TrendingRepo",
    "GitHubTrendingCollector",
    "HackerNewsCollector",
    "RedditCollector",
    "RSSCollector",
]
