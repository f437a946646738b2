"""Hacker News collector using the public Firebase API."""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..config import HN_CONFIG, USER_AGENT
from ..utils import get_logger
from .base import Article, Collector, utc_now

logger = get_logger(__name__)


def score_to_importance(score: int) -> int:
    if score > 300:
        return 7
    if score > 100:
        return 6
    return 5


class HackerNewsCollector(Collector):
    """Collector for the Hacker News top stories list."""

    BASE_URL = "https://hacker-news.firebaseio.com/v0"

    def __init__(
        self,
        limit: Optional[int] = None,
        min_score: int = HN_CONFIG["min_score"],
        high_priority_score: int = HN_CONFIG["high_priority_score"],
        batch_size: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.limit = limit or HN_CONFIG["top_stories_limit"]
        self.min_score = min_score
        self.high_priority_score = high_priority_score
        self.batch_size = batch_size
        self.transport = transport

    @property
    def name(self) -> str:
        return "Hacker News"

    async def collect(self, limit: Optional[int] = None) -> list[Article]:
        """Fetch the top story ids, then item details in parallel batches."""
        self.failures = []
        articles: list[Article] = []
        limit = limit or self.limit

        try:
            async with httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                transport=self.transport,
            ) as client:
                response = await client.get(f"{self.BASE_URL}/topstories.json", timeout=10.0)
                response.raise_for_status()
                story_ids = response.json()[:limit]

                for i in range(0, len(story_ids), self.batch_size):
                    batch = story_ids[i:i + self.batch_size]
                    stories = await asyncio.gather(
                        *(self._fetch_item(client, story_id) for story_id in batch)
                    )
                    now = utc_now()
                    for story in stories:
                        article = self._parse_story(story, now)
                        if article:
                            articles.append(article)

        except Exception as e:
            logger.warning(f"[{self.name}] API failed: {e}")
            self.failures.append(self.name)

        logger.info(f"[{self.name}] {len(articles)} stories collected")
        return articles

    async def _fetch_item(self, client: httpx.AsyncClient, story_id: int) -> Optional[dict]:
        try:
            response = await client.get(f"{self.BASE_URL}/item/{story_id}.json", timeout=5.0)
            response.raise_for_status()
            return response.json()
        except Exception as e:
            logger.debug(f"[{self.name}] Item {story_id} failed: {e}")
            return None

    def _parse_story(self, story: Optional[dict], now: datetime) -> Optional[Article]:
        """Map a story item to an Article, dropping jobs, Ask HN and low scores."""
        if not story or story.get("type") != "story" or not story.get("url"):
            return None

        score = story.get("score", 0)
        if score < self.min_score:
            return None

        try:
            return Article(
                title=story.get("title", ""),
                link=story["url"],
                description=f"HN Score: {score} | Comments: {story.get('descendants', 0)}",
                published_at=datetime.fromtimestamp(story.get("time", 0), tz=timezone.utc),
                source=self.name,
                category="tech",
                priority="high" if score > self.high_priority_score else "medium",
                guid=f"hn-{story['id']}",
                author=story.get("by", ""),
                collected_at=now,
                ai_importance=score_to_importance(score),
            )
        except ValueError as e:
            logger.debug(f"[{self.name}] Skipping story {story.get('id')}: {e}")
            return None
