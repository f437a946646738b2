"""Recency filtering and importance ranking."""

from datetime import datetime, timedelta
from typing import Optional

from ..collectors.base import Article, as_utc, utc_now


def filter_recent_articles(
    articles: list[Article], hours_ago: float = 24, now: Optional[datetime] = None
) -> list[Article]:
    """Keep articles published strictly after now - hours_ago."""
    cutoff = as_utc(now or utc_now()) - timedelta(hours=hours_ago)
    return [a for a in articles if a.published_at > cutoff]


def rank_articles(articles: list[Article]) -> list[Article]:
    """Sort by importance, then newest first. Returns a new list."""
    return sorted(
        articles,
        key=lambda a: (a.ai_importance, a.published_at),
        reverse=True,
    )


def newest_first(articles: list[Article], limit: Optional[int] = None) -> list[Article]:
    """Most recently published articles, optionally capped."""
    ordered = sorted(articles, key=lambda a: a.published_at, reverse=True)
    return ordered[:limit] if limit is not None else ordered
