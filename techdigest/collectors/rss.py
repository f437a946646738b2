"""RSS feed collector."""

import asyncio
import re
from datetime import datetime, timezone
from typing import Optional

import feedparser
import httpx

from ..config import USER_AGENT, get_enabled_rss_sources
from ..utils import get_logger
from .base import Article, Collector, utc_now

logger = get_logger(__name__)

IMG_SRC_RE = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    return " ".join(TAG_RE.sub(" ", text).split())


def extract_image(entry: dict, content: str) -> Optional[str]:
    """Pick an image: first <img> in content, then enclosure, then media tags."""
    match = IMG_SRC_RE.search(content or "")
    if match:
        return match.group(1)

    for enclosure in entry.get("enclosures", []) or []:
        if str(enclosure.get("type", "")).startswith("image/") and enclosure.get("href"):
            return enclosure["href"]

    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key, []) or []:
            if media.get("url"):
                return media["url"]

    return None


class RSSCollector(Collector):
    """Collector for the configured RSS feeds, fetched in small parallel batches."""

    def __init__(
        self,
        sources: Optional[list[dict]] = None,
        batch_size: int = 5,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.sources = sources if sources is not None else get_enabled_rss_sources()
        self.batch_size = batch_size
        self.timeout = timeout
        self.transport = transport

    @property
    def name(self) -> str:
        return "RSS"

    async def collect(self) -> list[Article]:
        """Fetch every feed, batch_size at a time."""
        self.failures = []
        logger.info(f"Fetching from {len(self.sources)} RSS sources...")
        articles: list[Article] = []

        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            for i in range(0, len(self.sources), self.batch_size):
                batch = self.sources[i:i + self.batch_size]
                results = await asyncio.gather(
                    *(self._fetch_feed(client, source) for source in batch)
                )
                for feed_articles in results:
                    articles.extend(feed_articles)

        logger.info(f"RSS collection complete: {len(articles)} total articles")
        return articles

    async def _fetch_feed(self, client: httpx.AsyncClient, source: dict) -> list[Article]:
        """Fetch and parse one feed. Failures yield an empty list."""
        try:
            response = await client.get(source["url"])
            response.raise_for_status()

            feed = feedparser.parse(response.text)
            now = utc_now()
            articles = []
            for entry in feed.entries:
                article = self._parse_entry(entry, source, now)
                if article:
                    articles.append(article)

            logger.info(f"[{source['name']}] {len(articles)} articles fetched")
            return articles

        except httpx.HTTPError as e:
            logger.warning(f"[{source['name']}] HTTP error: {e}")
        except Exception as e:
            logger.warning(f"[{source['name']}] Failed to collect: {e}")
        self.failures.append(source["name"])
        return []

    def _parse_entry(self, entry: dict, source: dict, now: datetime) -> Optional[Article]:
        """Parse a feed entry into an Article."""
        url = entry.get("link")
        title = (entry.get("title") or "").strip()

        if not url or not title:
            return None

        # content:encoded lands in entry.content; summary is the fallback
        content = ""
        if entry.get("content"):
            content = entry["content"][0].get("value", "")
        elif entry.get("summary"):
            content = entry["summary"]

        description = strip_html(entry.get("summary") or entry.get("description") or content)

        published_at = now
        parsed_date = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed_date:
            try:
                published_at = datetime(*parsed_date[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                pass

        priority = source.get("priority", "medium")
        try:
            return Article(
                title=title,
                link=url,
                description=description[:1000],
                content=content[:5000],
                published_at=published_at,
                source=source["name"],
                category=source.get("category", "tech"),
                priority=priority,
                guid=entry.get("id") or url,
                author=entry.get("author") or source["name"],
                image_url=extract_image(entry, content),
                collected_at=now,
                ai_importance=6 if priority == "high" else 5,
            )
        except ValueError as e:
            logger.debug(f"[{source['name']}] Skipping entry: {e}")
            return None
